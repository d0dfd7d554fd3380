from advmath.parser.lexer import tokenize
from advmath.parser.symbols import Symbol, classify
from advmath.parser.postfix import to_postfix
from advmath.parser.builder import build_tree
from advmath.parser.parse import Parser, ParserConfig, parse_equation, parse_string

__all__ = [
    "tokenize", "Symbol", "classify", "to_postfix", "build_tree",
    "Parser", "ParserConfig", "parse_equation", "parse_string",
]
