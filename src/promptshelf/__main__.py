"""Entry point: python -m promptshelf <command>

- "list [--clipboard TEXT]":      List prompts, most recently modified first
- "search QUERY [--limit N]":     Fuzzy search the library
- "render ID [name=value ...]":   Render a prompt and print the output
- "render ID --quick [--clipboard TEXT]":  Render from defaults and clipboard text
- "watch":                        Keep the index live and log every update
"""

from __future__ import annotations

import asyncio
import logging
import sys

from promptshelf.config import ConfigurationError, PromptshelfConfig, load_config
from promptshelf.library.crawler import CrawlError
from promptshelf.library.index import IndexRegistry, PromptIndex


def _setup_logging(config: PromptshelfConfig) -> None:
    level = "DEBUG" if config.debug_log else config.log_level
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _fail(message: str) -> None:
    print(message, file=sys.stderr)
    sys.exit(1)


async def _open_index(config: PromptshelfConfig) -> tuple[IndexRegistry, PromptIndex]:
    registry = IndexRegistry.from_config(config)
    registry.watch = False
    index = await registry.get(config.prompts_path)
    return registry, index


def _parse_assignments(args: list[str]) -> dict[str, str]:
    values: dict[str, str] = {}
    for arg in args:
        name, sep, value = arg.partition("=")
        if not sep or not name:
            _fail(f"Expected name=value, got: {arg}")
        values[name] = value
    return values


def _parse_search_args(args: list[str], default_limit: int) -> tuple[str, int]:
    limit = default_limit
    words: list[str] = []
    it = iter(args)
    for arg in it:
        if arg == "--limit":
            try:
                limit = int(next(it))
            except (StopIteration, ValueError):
                _fail("--limit expects an integer")
        else:
            words.append(arg)
    return " ".join(words), limit


def _take_option(args: list[str], flag: str) -> tuple[str | None, list[str]]:
    """Pull ``flag VALUE`` out of args."""
    if flag not in args:
        return None, args
    at = args.index(flag)
    if at + 1 >= len(args):
        _fail(f"{flag} expects a value")
    return args[at + 1], args[:at] + args[at + 2 :]


async def _list(config: PromptshelfConfig, args: list[str]) -> None:
    from promptshelf.render.quick import classify_clipboard, filter_for_clipboard
    from promptshelf.tools.prompt_tools import describe_record

    clipboard, _ = _take_option(args, "--clipboard")
    registry, index = await _open_index(config)
    try:
        records = index.get_all()
        if clipboard:
            records = filter_for_clipboard(records, classify_clipboard(clipboard))
        if not records:
            print("(no prompts found)")
        for record in records:
            print(describe_record(record))
    finally:
        await registry.dispose_all()


async def _search(config: PromptshelfConfig, args: list[str]) -> None:
    from promptshelf.tools.prompt_tools import describe_record

    query, limit = _parse_search_args(args, config.search.limit)
    registry, index = await _open_index(config)
    try:
        for result in index.search(query, limit):
            print(f"{result.score:7.3f}  {describe_record(result.record)}")
    finally:
        await registry.dispose_all()


async def _render(config: PromptshelfConfig, args: list[str]) -> None:
    from promptshelf.library.attachments import AttachmentError
    from promptshelf.render.context import ContextPreferences, build_context
    from promptshelf.render.parameters import (
        ParameterError,
        collect_form_values,
        normalize_and_validate_parameters,
    )
    from promptshelf.render.quick import quick_render
    from promptshelf.render.renderer import MissingMetadataError, PromptRenderer, TemplateRenderError
    from promptshelf.tools.prompt_tools import with_attachments

    clipboard, args = _take_option(args, "--clipboard")
    quick = "--quick" in args
    args = [arg for arg in args if arg != "--quick"]
    if not args:
        _fail("Usage: python -m promptshelf render PROMPT_ID [--quick] [name=value ...]")
    prompt_id, raw_values = args[0], _parse_assignments(args[1:])
    if quick and raw_values:
        _fail("--quick uses declared defaults and takes no name=value pairs")

    registry, index = await _open_index(config)
    try:
        record = index.get(prompt_id)
    finally:
        await registry.dispose_all()
    if record is None:
        _fail(f"Unknown prompt: {prompt_id}")

    renderer = PromptRenderer(debug_log=config.debug_log)
    context = build_context(ContextPreferences.from_config(config.context), clipboard=clipboard)
    try:
        if quick:
            rendered = quick_render(
                record, context=context, clipboard_text=clipboard, renderer=renderer
            )
        else:
            # Form field ids (param-<name>) are accepted alongside plain names
            values = {**raw_values, **collect_form_values(record, raw_values)}
            report = normalize_and_validate_parameters(record, values)
            report.raise_for_errors()
            rendered = renderer.render(record, report.values, context)
        print(with_attachments(record, rendered.output))
    except (ParameterError, MissingMetadataError, TemplateRenderError, AttachmentError) as e:
        _fail(str(e))


def _run_watch(config: PromptshelfConfig) -> None:
    from promptshelf.daemon import PromptshelfDaemon

    daemon = PromptshelfDaemon(config)
    asyncio.run(daemon.run())


def _usage() -> None:
    print("Usage: python -m promptshelf [list|search|render|watch]")
    print("  list [--clipboard TEXT]       List prompts, most recent first")
    print("  search QUERY [--limit N]      Fuzzy search prompts")
    print("  render ID [name=value ...]    Render a prompt")
    print("  render ID --quick [--clipboard TEXT]")
    print("                                Render from defaults and clipboard text")
    print("  watch                         Keep the index live until interrupted")
    sys.exit(1)


def main() -> None:
    cmd = sys.argv[1] if len(sys.argv) > 1 else "list"
    args = sys.argv[2:]

    config = load_config()
    _setup_logging(config)

    try:
        if cmd == "list":
            asyncio.run(_list(config, args))
        elif cmd == "search":
            asyncio.run(_search(config, args))
        elif cmd == "render":
            asyncio.run(_render(config, args))
        elif cmd == "watch":
            _run_watch(config)
        else:
            _usage()
    except (ConfigurationError, CrawlError) as e:
        _fail(f"index unavailable: {e}")
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
