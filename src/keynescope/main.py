"""Command‑line demo runner for keynescope."""

from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Any

from keynescope.explorer import Explorer
from keynescope.params import MODELS


def _assignment(text: str) -> tuple[str, str]:
    name, sep, value = text.partition("=")
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"expected FIELD=VALUE, got {text!r}")
    return name.strip(), value.strip()


def _bool(text: str) -> bool:
    lowered = text.lower()
    if lowered in {"1", "true", "yes", "on"}:
        return True
    if lowered in {"0", "false", "no", "off"}:
        return False
    raise argparse.ArgumentTypeError(f"expected a boolean, got {text!r}")


def _flag_assignment(text: str) -> tuple[str, bool]:
    name, value = _assignment(text)
    return name, _bool(value)


def _cli(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Explore a Keynesian model interactively.")
    p.add_argument("--model", choices=sorted(MODELS), default="keynesian_cross")
    p.add_argument("--config", default=None, help="YAML config file")
    p.add_argument(
        "--edit",
        type=_assignment,
        action="append",
        default=[],
        metavar="FIELD=VALUE",
        help="Numeric edit, repeatable; edits form one burst",
    )
    p.add_argument(
        "--toggle",
        type=_flag_assignment,
        action="append",
        default=[],
        metavar="FLAG=BOOL",
        help="Regime switch, applied after the edits",
    )
    p.add_argument(
        "--narrator",
        choices=["local", "chat", "none"],
        default=None,
        help="Explanation provider (overrides config)",
    )
    p.add_argument(
        "--sync", action="store_true", help="Carry parameters over on regime switches"
    )
    p.add_argument("--verbose", action="store_true", help="Log every edit")
    return p.parse_args(argv)


async def _run(args: argparse.Namespace) -> None:
    log = logging.getLogger("keynescope.main")

    overrides: dict[str, Any] = {}
    if args.narrator is not None:
        overrides["narrator"] = {"provider": args.narrator}
    if args.sync:
        overrides["sync_regime_parameters"] = True
    if args.verbose:
        overrides["logging"] = {"default_level": "DEEP_DEBUG"}

    with Explorer.init(args.model, args.config, **overrides) as explorer:

        @explorer.on_settle
        def _settled(change: Any) -> None:
            before, after = change.baseline_equilibrium, change.current_equilibrium
            log.info(
                "%s changed: Y %.2f -> %.2f, C %.2f -> %.2f, I %.2f -> %.2f",
                change.changed_field,
                before.output,
                after.output,
                before.consumption,
                after.consumption,
                before.investment,
                after.investment,
            )

        @explorer.on_explanation
        def _explained(result: Any) -> None:
            tag = " (fallback)" if result.fallback else ""
            log.info("Explanation%s:\n%s", tag, result.text)

        eq = explorer.equilibrium()
        log.info(
            "%s (%s): Y = %.2f, multiplier = %.3f",
            explorer.model,
            explorer.params.variant.name,
            eq.output,
            eq.multiplier,
        )

        if args.edit:
            explorer.begin()
            for name, value in args.edit:
                explorer.edit(name, float(value))
            explorer.flush()
            await explorer.join()

        for flag, value in args.toggle:
            explorer.toggle(flag, value)
            await explorer.join()

    log.info("Done.")


def main(argv: list[str] | None = None) -> None:
    args = _cli(argv)
    asyncio.run(_run(args))


if __name__ == "__main__":
    main()
