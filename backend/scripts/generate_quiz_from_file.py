#!/usr/bin/env python3
"""
Generate a quiz from a local file without the database: extract -> chunk -> prompt -> generate -> parse.
Requires OPENROUTER_API_KEY in backend/.env. Run from backend:
    python scripts/generate_quiz_from_file.py path/to/notes.pdf
"""
import argparse
import json
import logging
import sys
from pathlib import Path

# Ensure backend is on path and app can load
_backend = Path(__file__).resolve().parent.parent
if str(_backend) not in sys.path:
    sys.path.insert(0, str(_backend))


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("path", type=Path)
    parser.add_argument("--mime-type", default=None)
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    from app.config import settings
    from app.errors import QuizPipelineError
    from app.llm import get_generation_client
    from app.services.chunking_service import chunk_text
    from app.services.prompt_helpers import build_quiz_prompt
    from app.services.quiz_parser import parse_quiz_response
    from app.services.text_extraction import count_words, extract_text

    try:
        client = get_generation_client(settings)
        result = extract_text(str(args.path), args.mime_type)
        print(f"Extracted {len(result.text)} chars, {count_words(result.text)} words ({result.method})", file=sys.stderr)
        chunks = chunk_text(result.text, settings.max_input_tokens)
        if len(chunks) > 1:
            print(f"{len(chunks)} chunks; using the first", file=sys.stderr)
        raw = client.complete(build_quiz_prompt(chunks[0]))
        questions = parse_quiz_response(raw)
    except QuizPipelineError as e:
        print(f"{e.stage}: {e.message}", file=sys.stderr)
        return 1

    json.dump([q.model_dump() for q in questions], sys.stdout, indent=2, ensure_ascii=False)
    print()
    return 0


if __name__ == "__main__":
    sys.exit(main())
