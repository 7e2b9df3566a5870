import random
from typing import Callable

from tqdm import tqdm

from rsg.errors import GrammarNonTerminating
from rsg.grammar import GrammarStore, is_terminal

DEFAULT_MAX_DEPTH = 1000
DEFAULT_MAX_STEPS = 100000


class Expander:
    """
    Generates random sentences from a grammar by expanding nonterminals until
    only terminal words remain. Every time a nonterminal is met, one of its
    productions is picked uniformly at random, independently of earlier picks.

    Parameters
    ----------
    grammar : GrammarStore
        The grammar to expand. It is never modified.
    choose_index : Callable[[int], int], optional
        Source of random indices: given n, returns an index in [0, n).
        Defaults to ``random.Random(seed).randrange``.
    seed : int, optional
        Seed of the default index source.
    max_depth : int
        Maximum number of nested nonterminals in one expansion.
    max_steps : int, optional
        Maximum number of nonterminals expanded in one sentence. None disables the check.
    """

    def __init__(
            self,
            grammar: GrammarStore,
            choose_index: Callable[[int], int] = None,
            seed: int = None,
            max_depth: int = DEFAULT_MAX_DEPTH,
            max_steps: int = DEFAULT_MAX_STEPS
    ) -> None:
        if max_depth <= 0:
            raise ValueError(f"max_depth must be positive, got {max_depth}")

        self.grammar = grammar
        self.choose_index = choose_index if choose_index is not None else random.Random(seed).randrange
        self.max_depth = max_depth
        self.max_steps = max_steps

    def expand(self, start: str) -> list[str]:
        """
        Generate one sentence from the ``start`` nonterminal.

        Parameters
        ----------
        start : str
            The nonterminal to expand, e.g. ``<start>``.

        Returns
        -------
        list[str]
            The terminal words of the sentence, in order.
        """

        text = []
        steps = 0

        # each entry holds the remaining symbols of a production being expanded
        stack = [iter((start,))]

        while stack:
            word = next(stack[-1], None)

            if word is None:
                stack.pop()
            elif is_terminal(word):
                text.append(word)
            else:
                if len(stack) > self.max_depth:
                    raise GrammarNonTerminating(start, self.max_depth, "depth")

                steps += 1
                if self.max_steps is not None and steps > self.max_steps:
                    raise GrammarNonTerminating(start, self.max_steps, "step")

                production = self.grammar[word].random_production(self.choose_index)
                stack.append(iter(production))

        return text

    def generate(self, start: str, n: int, progress: bool = False) -> list[list[str]]:
        """
        Generate ``n`` independent sentences from the ``start`` nonterminal.

        Parameters
        ----------
        start : str
            The nonterminal to expand.
        n : int
            The number of sentences.
        progress : bool
            Show a progress bar.

        Returns
        -------
        list[list[str]]
            The generated sentences.
        """

        iterator = tqdm(range(n)) if progress else range(n)
        return [self.expand(start) for _ in iterator]
