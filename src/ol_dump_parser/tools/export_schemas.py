"""
A command-line tool for exporting the ndjson output contract as JSON Schema.

Downstream consumers can validate each output line against the schema of the record
named by its `kind` field.
"""
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Type

import typer
from pydantic import BaseModel

from ol_dump_parser.schemas.records import AuthorRecord, BookRecord

app = typer.Typer(
    help="A tool to export the output record schemas to JSON format.",
    add_completion=False
)
logger = logging.getLogger(__name__)

OUTPUT_RECORD_MODELS: Dict[str, Type[BaseModel]] = {
    "author": AuthorRecord,
    "book": BookRecord,
}


def export_output_schemas() -> Dict[str, Any]:
    """Builds one JSON Schema per record kind, keyed by the value of `kind`."""
    return {
        kind: model_cls.model_json_schema(mode="serialization")
        for kind, model_cls in OUTPUT_RECORD_MODELS.items()
    }


@app.command()
def main(
    output_file: Optional[Path] = typer.Option(
        None, "--output", "-o",
        help="File to write the schemas to. Prints to stdout when omitted.",
        dir_okay=False,
        resolve_path=True,
    ),
):
    """Exports the JSON Schema of every output record kind."""
    schemas = export_output_schemas()
    rendered = json.dumps({"kind_field": "kind", "records": schemas}, indent=2)
    if output_file is None:
        typer.echo(rendered)
        return
    output_file.parent.mkdir(parents=True, exist_ok=True)
    output_file.write_text(rendered + "\n", encoding="utf-8")
    logger.info(f"Wrote {len(schemas)} record schemas to {output_file}")
    typer.echo(f"Schemas written to {output_file}")


if __name__ == "__main__":
    app()
