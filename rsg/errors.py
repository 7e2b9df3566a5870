class GrammarError(Exception):
    pass


class GrammarSourceUnreadable(GrammarError):
    def __init__(self, path: str, reason: str = None) -> None:
        self.path = path
        self.reason = reason
        message = f'Failed to open the file named "{path}".  Check to ensure the file exists.'
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class MalformedGrammar(GrammarError):
    def __init__(self, message: str, block: int, line: int) -> None:
        self.block = block
        self.line = line
        super().__init__(f"{message} (definition #{block}, line {line})")


class UndefinedNonterminal(GrammarError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"No definition for nonterminal {name}")


class GrammarNonTerminating(GrammarError):
    def __init__(self, symbol: str, limit: int, kind: str = "depth") -> None:
        self.symbol = symbol
        self.limit = limit
        self.kind = kind
        super().__init__(f"Expansion of {symbol} exceeded the {kind} limit of {limit}")
