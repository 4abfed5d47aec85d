import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from maturagrader.client.bootstrap import SCORER_BACKENDS, build_scorer
from maturagrader.core.exceptions import EmptyDocumentError, IntakeError
from maturagrader.models.rubric import percentage
from maturagrader.services.collaborators import LoggingNotifier, ScoringService
from maturagrader.services.grading_session import GradingSession, SessionState
from maturagrader.services.presenter import format_share_text, format_summary

logger = logging.getLogger(__name__)


async def _amain(session: GradingSession, as_json: bool) -> int:
    result = await session.grade()

    if result is None:
        error = session.error
        message = error.message if error else "grading did not complete"
        print(f"Grading failed: {message}", file=sys.stderr)
        if error and error.details:
            print(json.dumps(error.details, ensure_ascii=False, indent=2, default=str), file=sys.stderr)
        return 1

    if as_json:
        output = {
            "result": result.model_dump(by_alias=True, mode="json"),
            "percentage": percentage(result),
            "word_count": session.document.word_count,
            "share_text": format_share_text(result),
        }
        print(json.dumps(output, ensure_ascii=False, indent=2))
    else:
        print(f"Words: {session.document.word_count}")
        print(format_summary(result))
        print()
        print(format_share_text(result))
    return 0


def main(argv=None, scorer: Optional[ScoringService] = None) -> int:
    parser = argparse.ArgumentParser(description="Grade a matura essay against the eight-criterion rubric")
    parser.add_argument("--scorer", choices=SCORER_BACKENDS, help="Scoring backend (default: SCORER_BACKEND)")
    parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    group = parser.add_mutually_exclusive_group(required=False)
    group.add_argument("--text", help="Essay text to grade")
    group.add_argument("--file", help="Path to a .txt or .md file containing the essay")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )

    try:
        scorer = scorer or build_scorer(args.scorer)
    except (ValueError, FileNotFoundError) as e:
        print(f"Cannot start scorer: {e}", file=sys.stderr)
        return 2

    session = GradingSession(scorer, notifier=LoggingNotifier())

    try:
        if args.file:
            path = Path(args.file)
            session.load_file(path.read_bytes(), filename=path.name)
        elif args.text is not None:
            session.set_text(args.text)
        else:
            session.set_text(sys.stdin.read())
    except OSError as e:
        print(f"Failed to read file: {e}", file=sys.stderr)
        return 2
    except IntakeError as e:
        print(f"Cannot use file: {e.message}", file=sys.stderr)
        return 2

    if session.state is SessionState.IDLE:
        print("No text provided. Use --text, --file, or pipe input.", file=sys.stderr)
        return 2

    try:
        return asyncio.run(_amain(session, as_json=args.json))
    except EmptyDocumentError as e:
        print(e.message, file=sys.stderr)
        return 2
    finally:
        session.close()


if __name__ == "__main__":
    raise SystemExit(main())
