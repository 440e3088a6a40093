"""Command line interface for gltfkun."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Optional

from .api import export, import_file, import_slice, write_file
from .config import IoConfig, load_config
from .errors import GltfError
from .graph import Graph
from .io.resolver import CallbackResolver
from .logging import configure_logging, get_logger, section, step
from .reporting import (
    JsonLinesReporter,
    PlainReporter,
    Reporter,
    RichReporter,
    SilentReporter,
    get_reporter,
    set_reporter,
    set_verbosity,
)


def _config(args: argparse.Namespace) -> Optional[IoConfig]:
    if args.config is None:
        return None
    return load_config(args.config)


def _inspect_cmd(args: argparse.Namespace) -> int:
    step(f"inspecting {args.file}")
    graph = Graph()
    config = _config(args)
    doc = asyncio.run(import_file(graph, args.file, config=config))
    counts = {
        "scenes": len(doc.scenes(graph)),
        "nodes": len(doc.nodes(graph)),
        "meshes": len(doc.meshes(graph)),
        "materials": len(doc.materials(graph)),
        "textures": len(doc.textures(graph)),
        "images": len(doc.images(graph)),
        "accessors": len(doc.accessors(graph)),
        "bufferViews": len(doc.buffer_views(graph)),
        "buffers": len(doc.buffers(graph)),
        "skins": len(doc.skins(graph)),
        "animations": len(doc.animations(graph)),
    }
    out = export(graph, doc, glb=False, config=config)
    summary = {
        "counts": counts,
        "extensionsUsed": out.json.get("extensionsUsed", []),
    }
    rep = get_reporter()
    rep.flush()
    if args.json:
        print(json.dumps(summary, indent=2, sort_keys=True))
    else:
        with section(f"Document {args.file.name}"):
            rep.status(" ".join(f"{k}={v}" for k, v in counts.items()))
            if summary["extensionsUsed"]:
                rep.status("extensions: " + ", ".join(summary["extensionsUsed"]))
    return 0


def _convert_cmd(args: argparse.Namespace) -> int:
    step(f"converting {args.input} -> {args.output}")
    graph = Graph()
    config = _config(args)
    doc = asyncio.run(import_file(graph, args.input, config=config))
    write_file(graph, doc, args.output, config=config)
    return 0


def _roundtrip_cmd(args: argparse.Namespace) -> int:
    """Export, re-import and export again; fail if the JSON drifts."""
    config = _config(args)
    graph = Graph()
    doc = asyncio.run(import_file(graph, args.file, config=config))
    first = export(graph, doc, glb=False, config=config)

    again = Graph()
    resolver = CallbackResolver(dict(first.resources).__getitem__)
    again_doc = asyncio.run(
        import_slice(
            again, first.to_json_bytes(), resolver=resolver, config=config
        )
    )
    second = export(again, again_doc, glb=False, config=config)
    rep = get_reporter()
    if second.json != first.json or second.resources != first.resources:
        rep.error(f"{args.file.name}: export is not stable across a round trip")
        return 1
    rep.status(f"{args.file.name}: round trip stable")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="gltfkun", description="glTF / GLB document tool"
    )
    p.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (repeatable)",
    )
    p.add_argument(
        "-r",
        "--reporter",
        choices=sorted(_REPORTERS),
        default="plain",
        help="Output backend; json emits one event per line",
    )
    p.add_argument(
        "--config",
        type=Path,
        help="I/O configuration file (YAML or JSON)",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    i = sub.add_parser("inspect", help="Summarize a .gltf or .glb file")
    i.add_argument("file", type=Path)
    i.add_argument("--json", action="store_true", help="Emit JSON summary")
    i.set_defaults(func=_inspect_cmd)

    c = sub.add_parser("convert", help="Convert between .gltf and .glb")
    c.add_argument("input", type=Path)
    c.add_argument("output", type=Path)
    c.set_defaults(func=_convert_cmd)

    rt = sub.add_parser(
        "roundtrip", help="Check that export output is stable across re-import"
    )
    rt.add_argument("file", type=Path)
    rt.set_defaults(func=_roundtrip_cmd)

    return p


_REPORTERS = {
    "plain": PlainReporter,
    "json": JsonLinesReporter,
    "silent": SilentReporter,
    "rich": RichReporter,
}


def _make_reporter(name: str) -> Reporter:
    # live bars need a terminal
    if name == "rich" and not sys.stderr.isatty():
        name = "plain"
    return _REPORTERS[name]()


def main(argv: list[str] | None = None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(argv)
    set_reporter(_make_reporter(args.reporter))
    set_verbosity(args.verbose)
    configure_logging(args.verbose)
    try:
        return args.func(args)
    except (GltfError, OSError, ValueError) as exc:
        get_logger().error("%s", exc)
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
