from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

import uvicorn
from loguru import logger
from lxml import etree

from lexnav.api.main import app as fastapi_app
from lexnav.citations.dedupe import dedupe_sources
from lexnav.citations.export import ExportFormat, export_citation
from lexnav.citations.models import ChatSource
from lexnav.core.config import get_settings
from lexnav.core.exceptions import DocumentPayloadError
from lexnav.core.logging import configure_logging
from lexnav.parsing.akoma_parser import AkomaNtosoTreeBuilder
from lexnav.parsing.citation_markers import CitationSegment, parse_citation_markers
from lexnav.parsing.document_models import HierarchicalDocument, load_document
from lexnav.parsing.legal_citations import parse_legal_citations
from lexnav.parsing.references import extract_reference, source_reference
from lexnav.rendering.html_renderer import render_html
from lexnav.rendering.renderer import render_document, render_text
from lexnav.rendering.toc import build_toc, toc_lines


def load_any(path: Path, document_id: str | None = None) -> HierarchicalDocument:
    if path.suffix.lower() == ".xml":
        return AkomaNtosoTreeBuilder().parse_file(str(path), document_id=document_id or path.stem)
    payload = json.loads(path.read_text(encoding="utf-8"))
    return load_document(payload, document_id=document_id)


def load_sources(path: str | None) -> list[ChatSource]:
    if not path:
        return []
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    if isinstance(payload, dict):
        payload = payload.get("sources", [])
    return [ChatSource.model_validate(item) for item in payload]


def cmd_render(path: str, output_format: str, document_id: str | None) -> None:
    document = load_any(Path(path), document_id)
    rendered = render_document(document)
    if output_format == "html":
        print(render_html(rendered))
    elif output_format == "json":
        print(rendered.model_dump_json(indent=2))
    else:
        print(render_text(rendered))
    logger.info("render_complete", path=path, format=output_format)


def cmd_toc(path: str) -> None:
    document = load_any(Path(path))
    for line in toc_lines(build_toc(document.root)):
        print(line)


def cmd_markers(text: str, sources_path: str | None) -> None:
    sources = load_sources(sources_path)
    for segment in parse_citation_markers(text):
        if isinstance(segment, CitationSegment):
            labels = []
            for number in segment.numbers:
                if 1 <= number <= len(sources):
                    source = sources[number - 1]
                    labels.append(f"{number}: {source.title} {source_reference(source) or ''}".rstrip())
                else:
                    labels.append(f"{number}: <unresolved>")
            print(f"citation {segment.text} -> {'; '.join(labels)}")
        else:
            print(f"text     {segment.text!r}")
    if sources:
        for entry in dedupe_sources(sources):
            print(f"source   {entry.source.document_id} x{entry.count}")


def cmd_reference(args: argparse.Namespace) -> None:
    reference = extract_reference(
        args.section,
        args.section_id,
        args.excerpt,
        legal_reference=args.legal_reference,
    )
    print(reference if reference is not None else "")


def cmd_legal_citations(text: str) -> None:
    for citation in parse_legal_citations(text):
        print(f"{citation.start}:{citation.end}\t{citation.text}\t{citation.eid}")


def cmd_export(sources_path: str, index: int, export_format: str) -> None:
    sources = load_sources(sources_path)
    if not 0 <= index < len(sources):
        logger.error("source_index_out_of_range", index=index, total=len(sources))
        raise SystemExit(1)
    print(export_citation(sources[index], export_format))


def cmd_serve(host: str, port: int) -> None:
    uvicorn.run(fastapi_app, host=host, port=port)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Lexnav CLI")
    sub = parser.add_subparsers(dest="command", required=True)

    render = sub.add_parser("render")
    render.add_argument("path")
    render.add_argument("--format", choices=["text", "html", "json"], default="text")
    render.add_argument("--document-id")

    toc = sub.add_parser("toc")
    toc.add_argument("path")

    markers = sub.add_parser("markers")
    markers.add_argument("text")
    markers.add_argument("--sources")

    reference = sub.add_parser("reference")
    reference.add_argument("--section")
    reference.add_argument("--section-id")
    reference.add_argument("--excerpt")
    reference.add_argument("--legal-reference")

    legal = sub.add_parser("legal-citations")
    legal.add_argument("text")

    export = sub.add_parser("export")
    export.add_argument("sources")
    export.add_argument("--index", type=int, default=0)
    export.add_argument("--format", choices=[fmt.value for fmt in ExportFormat], default="legal")

    serve = sub.add_parser("serve")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=8000)
    return parser


def main(argv: list[str] | None = None) -> None:
    settings = get_settings()
    configure_logging(settings.log_level, json_output=False)
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        if args.command == "render":
            cmd_render(args.path, args.format, args.document_id)
        elif args.command == "toc":
            cmd_toc(args.path)
        elif args.command == "markers":
            cmd_markers(args.text, args.sources)
        elif args.command == "reference":
            cmd_reference(args)
        elif args.command == "legal-citations":
            cmd_legal_citations(args.text)
        elif args.command == "export":
            cmd_export(args.sources, args.index, args.format)
        elif args.command == "serve":
            cmd_serve(args.host, args.port)
    except DocumentPayloadError as exc:
        logger.error("invalid_document: {}", exc)
        sys.exit(1)
    except etree.XMLSyntaxError as exc:
        logger.error("invalid_xml: {}", exc)
        sys.exit(1)


if __name__ == "__main__":
    main()
