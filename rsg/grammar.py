from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Callable, TextIO

import nltk
from nltk.grammar import CFG, Nonterminal

from rsg.errors import GrammarSourceUnreadable, MalformedGrammar, UndefinedNonterminal

NONTERMINAL_MARKER = "<"
NONTERMINAL_CLOSE = ">"
OPEN_DELIM = "{"
CLOSE_DELIM = "}"

Production = tuple[str, ...]


def is_terminal(word: str) -> bool:
    return not word.startswith(NONTERMINAL_MARKER)


def is_nonterminal_name(word: str) -> bool:
    return (
        len(word) > 2
        and word.startswith(NONTERMINAL_MARKER)
        and word.endswith(NONTERMINAL_CLOSE)
        and not any(c.isspace() for c in word)
    )


@dataclass(frozen=True)
class Definition:
    """
    All alternative productions of a single nonterminal, in textual order.

    Parameters
    ----------
    nonterminal : str
        The name of the nonterminal, brackets included (e.g. ``<start>``).
    productions : tuple[Production, ...]
        The alternatives. There is at least one and none of them is empty.
    """

    nonterminal: str
    productions: tuple[Production, ...]

    def __post_init__(self) -> None:
        if not self.productions:
            raise ValueError(f"{self.nonterminal} must have at least one production")
        if any(len(p) == 0 for p in self.productions):
            raise ValueError(f"{self.nonterminal} has an empty production")

    def random_production(self, choose_index: Callable[[int], int]) -> Production:
        n = len(self.productions)
        i = choose_index(n)
        if not 0 <= i < n:
            raise ValueError(f"index source returned {i}, expected a value in [0, {n})")
        return self.productions[i]


class GrammarStore(Mapping):
    """
    Read-only mapping from nonterminal name to its ``Definition``.

    The store is filled once, when it is constructed. A nonterminal defined
    more than once keeps its last definition.
    """

    def __init__(self, definitions: Iterable[Definition] = ()) -> None:
        self._definitions = {}
        for definition in definitions:
            self._definitions[definition.nonterminal] = definition

    @classmethod
    def from_dict(cls, rules: Mapping[str, Iterable[Iterable[str]]]) -> "GrammarStore":
        return cls(
            Definition(name, tuple(tuple(p) for p in productions))
            for name, productions in rules.items()
        )

    def __getitem__(self, name: str) -> Definition:
        try:
            return self._definitions[name]
        except KeyError:
            raise UndefinedNonterminal(name) from None

    def __contains__(self, name: object) -> bool:
        return name in self._definitions

    def get(self, name, default=None):
        return self._definitions.get(name, default)

    def __iter__(self) -> Iterator[str]:
        return iter(self._definitions)

    def __len__(self) -> int:
        return len(self._definitions)

    def __repr__(self) -> str:
        return f"GrammarStore({len(self)} definitions)"

    def undefined_references(self) -> set[str]:
        return {
            word
            for definition in self._definitions.values()
            for production in definition.productions
            for word in production
            if not is_terminal(word) and word not in self._definitions
        }

    def to_nltk(self, start: str = "<start>") -> CFG:
        """
        Convert the grammar to an ``nltk.grammar.CFG`` rooted at ``start``.

        Parameters
        ----------
        start : str
            The start nonterminal of the resulting grammar.

        Returns
        -------
        CFG
            The equivalent NLTK grammar.
        """

        def symbol(word):
            return word if is_terminal(word) else Nonterminal(word)

        productions = [
            nltk.grammar.Production(Nonterminal(name), [symbol(w) for w in production])
            for name, definition in self._definitions.items()
            for production in definition.productions
        ]
        return CFG(Nonterminal(start), productions)

    def verify(self, tokens: Iterable[str], start: str = "<start>") -> bool:
        """
        Check if a token sequence can be derived from ``start``.

        Parameters
        ----------
        tokens : Iterable[str]
            The sentence to check.
        start : str
            The nonterminal the sentence should be derived from.

        Returns
        -------
        bool
            True if the sentence is in the language of the grammar, False otherwise.
        """

        parser = nltk.ChartParser(self.to_nltk(start))

        try:
            return next(iter(parser.parse(list(tokens))), None) is not None
        except ValueError:
            # some of the words are not covered by the grammar
            return False


class _GrammarReader:
    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0
        self.lineno = 1

    def skip_to_open(self) -> bool:
        i = self.text.find(OPEN_DELIM, self.pos)
        if i == -1:
            self.pos = len(self.text)
            return False

        self.lineno += self.text.count("\n", self.pos, i)
        self.pos = i + 1
        return True

    def next_line(self) -> tuple[str, int]:
        # returns the next non-blank line, stripped, or None at the end of input
        while self.pos < len(self.text):
            end = self.text.find("\n", self.pos)
            if end == -1:
                end = len(self.text)

            content = self.text[self.pos:end].strip()
            lineno = self.lineno
            self.pos = end + 1
            self.lineno += 1

            if content:
                return content, lineno

        return None, self.lineno


def _parse_definition(reader: _GrammarReader, block: int) -> Definition:
    header, lineno = reader.next_line()
    if header is None:
        raise MalformedGrammar("unexpected end of input, expected a nonterminal name", block, lineno)
    if not is_nonterminal_name(header):
        raise MalformedGrammar(f"expected a nonterminal name like <name>, found {header!r}", block, lineno)

    count_text, lineno = reader.next_line()
    if count_text is None:
        raise MalformedGrammar(f"unexpected end of input, expected the production count of {header}", block, lineno)

    try:
        count = int(count_text)
    except ValueError:
        raise MalformedGrammar(f"expected the production count of {header}, found {count_text!r}", block, lineno) from None

    if count <= 0:
        raise MalformedGrammar(f"{header} must have a positive production count, found {count}", block, lineno)

    productions = []
    for _ in range(count):
        line, lineno = reader.next_line()
        if line is None or line == CLOSE_DELIM:
            raise MalformedGrammar(f"{header} declares {count} productions but only {len(productions)} found", block, lineno)
        productions.append(tuple(line.split()))

    close, lineno = reader.next_line()
    if close != CLOSE_DELIM:
        found = "end of input" if close is None else repr(close)
        raise MalformedGrammar(f"expected '{CLOSE_DELIM}' after {count} productions of {header}, found {found}", block, lineno)

    return Definition(header, tuple(productions))


def parse_grammar(text: str) -> GrammarStore:
    """
    Parse grammar text into a ``GrammarStore``.

    Assumed grammar format:
      - Each definition is enclosed in a pair of braces.
      - The first line of a definition is the nonterminal name, e.g. ``<start>``.
      - The second line is the number N of alternative productions.
      - Each of the following N lines is one production: a sequence of
        whitespace-separated words. Words starting with ``<`` are nonterminals,
        all other words are terminals.
      - Text outside of the braces is ignored.

    Parameters
    ----------
    text : str
        The grammar text.

    Returns
    -------
    GrammarStore
        The parsed grammar.
    """

    reader = _GrammarReader(text)
    definitions = []

    while reader.skip_to_open():
        definitions.append(_parse_definition(reader, len(definitions) + 1))

    return GrammarStore(definitions)


def read_grammar(stream: TextIO) -> GrammarStore:
    return parse_grammar(stream.read())


def load_grammar(path: str) -> GrammarStore:
    try:
        with open(path, encoding="utf-8") as f:
            text = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise GrammarSourceUnreadable(path, getattr(e, "strerror", None) or str(e)) from e

    return parse_grammar(text)
