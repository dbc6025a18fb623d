"""
DocReader - Command Line Entry Point

Usage:
    docreader report.pdf "What was Q3 revenue?"
    docreader report.pdf "Who signed it?" --mode Chunked --mode MultiPass --parallel
    docreader notes.md "Summarize the risks" --mode Hierarchical --json

Exit codes:
    0 - answered
    1 - interrupted
    2 - invalid input, unreadable document or missing configuration
"""

import argparse
import json
import os
import sys

from docreader.ai.llm_gateway import CancellationToken
from docreader.config import OPENAI_API_KEY_ENV, get_default_modes
from docreader.exceptions import ExtractionError, ValidationError
from docreader.extraction import DocumentLoader
from docreader.logging_config import close_debug_log, debug_log
from docreader.qa import MODES, DocumentQAOrchestrator
from docreader.strategies import ChainOfThought


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docreader",
        description="Answer a question about a document using an LLM.",
    )
    parser.add_argument("file", help="Document to read (.txt, .md or .pdf)")
    parser.add_argument("question", help="Question to answer")
    parser.add_argument(
        "--mode", "-m", action="append", dest="modes", metavar="MODE",
        help=f"Reading mode, repeatable ({', '.join(MODES)}). Default from reader.yaml",
    )
    parser.add_argument("--parallel", action="store_true", help="Query chunks concurrently")
    parser.add_argument("--refine", action="store_true", help="Fact-check the answer in a second pass")
    parser.add_argument("--json", action="store_true", help="Print the chain-of-thought as JSON")
    parser.add_argument("--model", help="Model identifier, e.g. gpt-4o")
    parser.add_argument("--temperature", type=float, help="Sampling temperature")
    parser.add_argument("--penalty", type=float,
                        help="Presence and frequency penalty (both set to this value)")
    parser.add_argument("--max-tokens", type=int, dest="max_tokens", help="Output token cap per call")
    parser.add_argument("--token-limit", type=int, dest="token_limit", help="Chunk size in tokens")
    parser.add_argument("--timeout", type=float, help="Give up after this many seconds")
    parser.add_argument("--remove-numbers", action="store_true", help="Strip digits before chunking")
    parser.add_argument("--keep-special-chars", action="store_true",
                        help="Keep emoji and other non-text characters")
    return parser


def _collect_options(args: argparse.Namespace) -> dict:
    options = {}
    if args.model:
        options["model"] = args.model
    if args.temperature is not None:
        options["temperature"] = args.temperature
    if args.penalty is not None:
        options["presence_penalty"] = args.penalty
        options["frequency_penalty"] = args.penalty
    if args.max_tokens is not None:
        options["max_tokens"] = args.max_tokens
    if args.token_limit is not None:
        options["token_limit"] = args.token_limit
    return options


def _render(result) -> str:
    if isinstance(result, ChainOfThought):
        return result.final_answer
    if isinstance(result, dict):
        return "\n\n".join(f"[{mode}]\n{_render(answer)}" for mode, answer in result.items())
    return result


def _to_json(result) -> str:
    if isinstance(result, dict):
        data = {mode: trace.to_dict() for mode, trace in result.items()}
    else:
        data = result.to_dict()
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for the docreader command.
    """
    args = build_parser().parse_args(argv)

    if not os.environ.get(OPENAI_API_KEY_ENV):
        print(f"Error: set the {OPENAI_API_KEY_ENV} environment variable.", file=sys.stderr)
        return 2

    orchestrator = DocumentQAOrchestrator(
        loader=DocumentLoader(
            remove_special_chars=not args.keep_special_chars,
            remove_numbers=args.remove_numbers,
        ),
    )
    cancel_token = CancellationToken(timeout=args.timeout) if args.timeout else CancellationToken()

    try:
        result = orchestrator.answer_question(
            args.file,
            args.question,
            args.modes or get_default_modes(),
            use_parallel=args.parallel,
            refine=args.refine,
            return_chain_of_thought=args.json,
            cancel_token=cancel_token,
            **_collect_options(args),
        )
    except (ValidationError, ExtractionError) as e:
        debug_log(f"[CLI] {type(e).__name__}: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        cancel_token.cancel()
        print("Interrupted.", file=sys.stderr)
        return 1
    finally:
        close_debug_log()

    print(_to_json(result) if args.json else _render(result))
    return 0


if __name__ == "__main__":
    sys.exit(main())
