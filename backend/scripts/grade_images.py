"""
Grade scanned essay images from the command line.

Usage (from backend directory):
  python -m scripts.grade_images essay1.jpg essay2.png --level Secondary --report-dir out/

Uses the stored API key, level and model; flags override them for this run
only. Successful results are added to the history like uploads through the API.
"""

import argparse
import asyncio
import mimetypes
import sys
from pathlib import Path

from essay_grader.core.database import get_session_local, init_db
from essay_grader.core.logging import get_logger, setup_logging
from essay_grader.core.store import GraderStore
from essay_grader.schemas.grading import GradingLevel, UploadStatus
from essay_grader.services.batch_session import BatchSession
from essay_grader.services.essay_grading import EssayGradingService
from essay_grader.services.html_generator import HTMLGenerator
from essay_grader.utils.helpers import sanitize_filename

logger = get_logger()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Grade scanned essay images")
    parser.add_argument("images", nargs="+", help="Essay image files")
    parser.add_argument("--level", choices=[level.value for level in GradingLevel])
    parser.add_argument("--model", help="Gemini model id")
    parser.add_argument("--api-key", help="Google AI Studio API key")
    parser.add_argument("--report-dir", help="Write an HTML report per graded essay here")
    return parser


def read_images(paths):
    files = []
    for path in paths:
        path = Path(path)
        content_type = mimetypes.guess_type(path.name)[0] or "image/jpeg"
        files.append((path.name, content_type, path.read_bytes()))
    return files


async def run(args) -> int:
    setup_logging()
    init_db()
    store = GraderStore(get_session_local()).load()
    if args.api_key:
        store.api_key = args.api_key
    if args.level:
        store.level = GradingLevel(args.level)
    if args.model:
        store.model = args.model
    if not store.api_key:
        print("No API key configured. Pass --api-key or set one in Settings.", file=sys.stderr)
        return 2

    session = BatchSession()
    session.add_files(read_images(args.images))
    summary = await EssayGradingService(store).analyze_batch(session)

    report_dir = Path(args.report_dir) if args.report_dir else None
    if report_dir:
        report_dir.mkdir(parents=True, exist_ok=True)
    generator = HTMLGenerator()

    for item in session.items:
        if item.status == UploadStatus.DONE:
            result = item.result
            print(f"{item.filename}: {result.student_name} - {result.title} - score {result.score}")
            if report_dir:
                stem = sanitize_filename(Path(item.filename).stem)
                generator.generate(result, str(report_dir / f"{stem}_graded.html"))
        else:
            print(f"{item.filename}: {item.status.value} - {item.error_msg}")

    print(f"Graded {summary.succeeded} of {summary.processed} essays")
    return 0 if summary.failed == 0 else 1


def main():
    args = build_parser().parse_args()
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
