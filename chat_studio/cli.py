"""CLI entry point for chat-studio.

Headless access to the same providers and streaming facade as the Gradio UI.

Entry point:
    chat-studio-cli providers [--json]
    chat-studio-cli chat <message> [--provider <id>]
    chat-studio-cli image <prompt> [--aspect-ratio 16:9] -o out.jpg
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────
# ARGUMENT PARSING
# ─────────────────────────────────────────────────────────────────────


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chat-studio-cli",
        description="Headless chat and image generation for chat-studio.",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )
    sub = parser.add_subparsers(dest="command")

    # providers
    providers_p = sub.add_parser("providers", help="List configured providers")
    providers_p.add_argument(
        "--json", action="store_true", dest="json_output",
        help="Full JSON output (API keys are never printed)",
    )

    # chat
    chat_p = sub.add_parser("chat", help="Send one message and stream the reply")
    chat_p.add_argument("message", help="Message text")
    chat_p.add_argument("--provider", default=None, help="Provider ID (default: first)")

    # image
    image_p = sub.add_parser("image", help="Generate an image with Imagen")
    image_p.add_argument("prompt", help="Image description")
    image_p.add_argument("--aspect-ratio", default="1:1", help="1:1, 16:9, 9:16 or 3:4")
    image_p.add_argument("-o", "--output", required=True, help="Output JPEG path")

    return parser


# ─────────────────────────────────────────────────────────────────────
# COMMANDS
# ─────────────────────────────────────────────────────────────────────


def _cmd_providers(json_output: bool = False) -> int:
    """List providers. Returns exit code."""
    from chat_studio.providers import load_providers

    registry = load_providers()

    if json_output:
        data = [
            {
                "id": p.id,
                "name": p.name,
                "kind": p.kind.value,
                "model_id": p.model_id,
                "base_url": p.base_url,
                "is_system": p.is_system,
                "configured": p.is_configured(),
            }
            for p in registry
        ]
        json.dump(data, sys.stdout, indent=2)
        sys.stdout.write("\n")
    else:
        for p in registry:
            marker = "" if p.is_configured() else "  (needs API key)"
            print(f"{p.id}\t{p.kind.value}\t{p.model_id}{marker}")

    return 0


async def _cmd_chat(message: str, provider_id: Optional[str] = None) -> int:
    """Stream a single-turn reply to stdout. Returns exit code."""
    from chat_studio.adapters.base import ChatStudioError
    from chat_studio.providers import load_providers
    from chat_studio.streaming import stream_chat_response

    registry = load_providers()
    if provider_id and registry.get(provider_id) is None:
        print(f"Error: unknown provider '{provider_id}'", file=sys.stderr)
        return 1
    provider = registry.resolve(provider_id)

    shown = ""

    def on_chunk(text: str) -> None:
        nonlocal shown
        # Snapshots only grow; print the part not yet on screen
        if text.startswith(shown):
            sys.stdout.write(text[len(shown):])
        else:
            sys.stdout.write("\n" + text)
        sys.stdout.flush()
        shown = text

    try:
        provider.validate_for_use()
        await stream_chat_response([], message, [], provider, on_chunk=on_chunk)
    except (ChatStudioError, ValueError) as e:
        print(f"\nError: {e}", file=sys.stderr)
        return 1

    sys.stdout.write("\n")
    return 0


async def _cmd_image(prompt: str, aspect_ratio: str, output: str) -> int:
    """Generate an image and write the JPEG. Returns exit code."""
    from chat_studio.adapters.base import ChatStudioError
    from chat_studio.streaming import generate_image
    from chat_studio.ui_helpers import decode_data_uri

    try:
        data_uri = await generate_image(prompt, aspect_ratio)
    except (ChatStudioError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    path = Path(output)
    path.write_bytes(decode_data_uri(data_uri))
    print(f"Image written to {path}", file=sys.stderr)
    return 0


# ─────────────────────────────────────────────────────────────────────
# ENTRY POINT
# ─────────────────────────────────────────────────────────────────────


def main():
    parser = _build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    # Logging
    level = logging.DEBUG if args.verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(name)s %(message)s", stream=sys.stderr)

    from dotenv import load_dotenv
    load_dotenv()

    # Dispatch
    if args.command == "providers":
        code = _cmd_providers(json_output=args.json_output)
    elif args.command == "chat":
        code = asyncio.run(_cmd_chat(args.message, provider_id=args.provider))
    elif args.command == "image":
        code = asyncio.run(_cmd_image(args.prompt, args.aspect_ratio, args.output))
    else:
        parser.print_help()
        code = 1

    sys.exit(code)


if __name__ == "__main__":
    main()
