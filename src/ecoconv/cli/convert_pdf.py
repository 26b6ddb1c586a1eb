"""CLI command converting a PDF catalog into an Ecometri CSV."""

from __future__ import annotations

import argparse
import json
import logging

from dotenv import load_dotenv

from ecoconv.config import PDF_STRATEGIES, ConverterSettings
from ecoconv.errors import ConversionError
from ecoconv.pipeline import build_converter, write_csv

load_dotenv()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Convert a PDF product catalog into an Ecometri CSV")
    parser.add_argument("--path", required=True, help="PDF catalog to convert")
    parser.add_argument("--output-dir", default=".", help="Directory receiving the CSV file")
    parser.add_argument(
        "--strategy",
        choices=PDF_STRATEGIES,
        default=None,
        help="Product detection strategy (defaults to CATALOG_PDF_STRATEGY)",
    )
    parser.add_argument("--preview", type=int, default=10, help="How many products to include in the output")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")

    try:
        settings = ConverterSettings.from_env()
        converter = build_converter(settings)
        result = converter.convert_pdf(args.path, strategy=args.strategy)
        csv_path = write_csv(result, args.output_dir)
    except (ConversionError, ValueError) as exc:
        print(json.dumps({"success": False, "error": str(exc)}, ensure_ascii=True, indent=2))
        return 1

    payload = result.to_payload(preview=max(0, args.preview))
    payload["csv_path"] = str(csv_path)
    print(json.dumps(payload, ensure_ascii=True, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
