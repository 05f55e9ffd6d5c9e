"""CLI entry point to run report extraction on a document URL."""

import argparse
import json

from medextract.config import configure_logging
from medextract.pipeline.graph import ExtractionPipeline
from medextract.service import handle_extract_request


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Extract structured data from a medical report URL",
    )
    parser.add_argument(
        "--url",
        type=str,
        required=True,
        help="URL of the report (image or PDF)",
    )
    parser.add_argument(
        "--type",
        choices=["image", "pdf"],
        default="image",
        help="Fallback document type when the server does not say",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log each pipeline step",
    )
    args = parser.parse_args()

    configure_logging("DEBUG" if args.verbose else None)

    print("=" * 60)
    print("Report extraction")
    print("=" * 60)
    print(f"\nDocument:\n  {args.url} ({args.type})\n")

    pipeline = ExtractionPipeline.from_settings()
    status, body = handle_extract_request(
        {"fileUrl": args.url, "fileType": args.type},
        pipeline,
    )

    if status != 200:
        print(f"FAILED ({status}, {body.get('category')}): {body.get('error')}")
        raise SystemExit(1)

    print("=" * 60)
    print("FORM DATA")
    print("=" * 60)
    form = dict(body["formData"])
    form.pop("extractedData", None)
    print(json.dumps(form, indent=2, ensure_ascii=False))

    print("\n" + "=" * 60)
    print("FULL EXTRACTION")
    print("=" * 60)
    print(json.dumps(body["rawExtraction"], indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
