import os
import sys
from argparse import ArgumentParser

import yaml

from rsg.errors import GrammarError, GrammarSourceUnreadable, MalformedGrammar
from rsg.expander import DEFAULT_MAX_DEPTH, DEFAULT_MAX_STEPS, Expander
from rsg.grammar import GrammarStore, load_grammar

DEFAULT_CONFIG = os.path.join(os.path.dirname(os.path.realpath(__file__)), "configs/rsg/default.yaml")

EXIT_USAGE = 1
EXIT_UNREADABLE = 2
EXIT_GRAMMAR_ERROR = 3


def load_config(path: str, **overrides) -> dict:
    # without a config file the keyword defaults of generate_text apply
    if path is None:
        config = {}
    else:
        with open(path, encoding="utf-8") as f:
            config = yaml.safe_load(f) or {}

    # command line values take precedence over the config file
    config.update({k: v for k, v in overrides.items() if v is not None})
    return config


def generate_text(
        grammar: GrammarStore,
        start_symbol: str = "<start>",
        n_versions: int = 3,
        seed: int = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
        max_steps: int = DEFAULT_MAX_STEPS,
        log_stats: bool = False,
        verify: bool = False,
        **kwargs
    ) -> int:
    """Print ``n_versions`` random sentences and return the number of failed expansions."""

    expander = Expander(grammar, seed=seed, max_depth=max_depth, max_steps=max_steps)
    sentences = []
    n_failed = 0

    for i in range(n_versions):
        print(f"Version #{i + 1}: ---------------------------")

        try:
            text = expander.expand(start_symbol)
        except GrammarError as e:
            print(f"Failed to generate version #{i + 1}: {e}", file=sys.stderr)
            print()
            n_failed += 1
            continue

        sentences.append(text)
        print(" ".join(text))

        if verify:
            print(f"Derivable from {start_symbol}: {grammar.verify(text, start_symbol)}")

        print()

    if log_stats and sentences:
        avg_len = sum(len(s) for s in sentences) / len(sentences)
        n_unique = len(set(tuple(s) for s in sentences))
        vocab_size = len(set(w for s in sentences for w in s))

        print(f"Stats for {len(sentences)} versions:")
        print(f"Average length: {avg_len}")
        print(f"Number of unique versions: {n_unique}")
        print(f"Vocabulary size: {vocab_size}")

    return n_failed


def main(argv: list[str] = None) -> int:
    args = ArgumentParser(prog="rsg", description="Random Sentence Generator")
    args.add_argument("grammar_file", type=str, nargs="?", default=None)
    args.add_argument("--config", type=str, default=None)
    args.add_argument("--start", type=str, default=None)
    args.add_argument("--n_versions", type=int, default=None)
    args.add_argument("--seed", type=int, default=None)
    args.add_argument("--max_depth", type=int, default=None)
    args.add_argument("--log_stats", action="store_true", default=None)
    args.add_argument("--verify", action="store_true", default=None)
    args = args.parse_args(argv)

    if args.grammar_file is None:
        print("You need to specify the name of a grammar file.", file=sys.stderr)
        print("Usage: rsg <path to grammar text file>", file=sys.stderr)
        return EXIT_USAGE

    config_path = args.config
    if config_path is None and os.path.exists(DEFAULT_CONFIG):
        config_path = DEFAULT_CONFIG

    try:
        config = load_config(
            config_path,
            start_symbol=args.start,
            n_versions=args.n_versions,
            seed=args.seed,
            max_depth=args.max_depth,
            log_stats=args.log_stats,
            verify=args.verify
        )
    except (OSError, yaml.YAMLError) as e:
        print(f'Failed to read the config file "{config_path}": {e}', file=sys.stderr)
        return EXIT_USAGE

    for key in ("n_versions", "max_depth", "max_steps"):
        value = config.get(key)
        if value is not None and (not isinstance(value, int) or value <= 0):
            print(f"{key} must be a positive integer, got {value!r}", file=sys.stderr)
            return EXIT_USAGE

    try:
        grammar = load_grammar(args.grammar_file)
    except GrammarSourceUnreadable as e:
        print(e, file=sys.stderr)
        return EXIT_UNREADABLE
    except MalformedGrammar as e:
        print(f'The grammar file called "{args.grammar_file}" is malformed: {e}', file=sys.stderr)
        return EXIT_GRAMMAR_ERROR

    print(f'The grammar file called "{args.grammar_file}" contains {len(grammar)} definitions.')

    n_failed = generate_text(grammar, **config)
    return EXIT_GRAMMAR_ERROR if n_failed > 0 else 0


if __name__ == "__main__":
    sys.exit(main())
