"""Command line interface for SuperRes."""

from __future__ import annotations

import argparse
import asyncio
import json
from typing import Any, Awaitable, Dict, Optional, Tuple

from superres.api import READY_RESPONSE, SuperResolutionAPI
from superres.providers import PROVIDERS, create_provider

CommandOutcome = Tuple[Dict[str, Any], int]


def _print(payload: Dict[str, Any]) -> None:
    print(json.dumps(payload, indent=2, sort_keys=True))


async def command_available(
    api: SuperResolutionAPI, args: argparse.Namespace
) -> CommandOutcome:
    available = api.is_available()
    return {"available": available}, 0 if available else 1


async def command_state(
    api: SuperResolutionAPI, args: argparse.Namespace
) -> CommandOutcome:
    state = api.get_ready_state()
    return {"state": state}, 1 if state.startswith("Error:") else 0


async def command_ensure(
    api: SuperResolutionAPI, args: argparse.Namespace
) -> CommandOutcome:
    result = await api.ensure_model_ready()
    return {"result": result}, 0 if result == READY_RESPONSE else 1


async def command_scale(
    api: SuperResolutionAPI, args: argparse.Namespace
) -> CommandOutcome:
    result = await api.scale_image(args.input, args.output, args.factor)
    return result.to_dict(), 0 if result.success else 1


async def command_sharpen(
    api: SuperResolutionAPI, args: argparse.Namespace
) -> CommandOutcome:
    result = await api.sharpen_image(args.input, args.output)
    return result.to_dict(), 0 if result.success else 1


async def _run(operation: Awaitable[CommandOutcome], timeout: Optional[float]):
    if timeout is None:
        return await operation
    return await asyncio.wait_for(operation, timeout)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="superres", description="On-device image super-resolution"
    )
    parser.add_argument(
        "--provider",
        choices=sorted(PROVIDERS),
        help="Capability provider (defaults to SUPERRES_PROVIDER)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        help="Cancel the operation after this many seconds",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    available_parser = subparsers.add_parser(
        "available", help="Check whether the model can be used on this machine"
    )
    available_parser.set_defaults(func=command_available)

    state_parser = subparsers.add_parser("state", help="Print the model ready state")
    state_parser.set_defaults(func=command_state)

    ensure_parser = subparsers.add_parser(
        "ensure", help="Download/initialize the model if needed"
    )
    ensure_parser.set_defaults(func=command_ensure)

    scale_parser = subparsers.add_parser("scale", help="Upscale an image")
    scale_parser.add_argument("input", help="Input image path")
    scale_parser.add_argument("output", help="Output image path (overwritten)")
    scale_parser.add_argument(
        "--factor", type=int, default=2, help="Integer scale factor (1-8)"
    )
    scale_parser.set_defaults(func=command_scale)

    sharpen_parser = subparsers.add_parser(
        "sharpen", help="Sharpen an image without changing its size"
    )
    sharpen_parser.add_argument("input", help="Input image path")
    sharpen_parser.add_argument("output", help="Output image path (overwritten)")
    sharpen_parser.set_defaults(func=command_sharpen)

    return parser


def main(argv: Optional[list] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    api = SuperResolutionAPI(create_provider(args.provider))
    try:
        payload, code = asyncio.run(_run(args.func(api, args), args.timeout))
    except asyncio.TimeoutError:
        payload = {"result": f"Cancelled: timed out after {args.timeout:g} seconds"}
        code = 2

    _print(payload)
    return code


if __name__ == "__main__":
    raise SystemExit(main())
