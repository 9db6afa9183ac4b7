"""Parser for the Zy language.

Converts a stream of tokens into an Abstract Syntax Tree (AST).
Uses recursive descent with one method per precedence level. Tokens are
pulled from the lexer on demand.

Operator Precedence (lowest to highest):
1. ;  (sequence)
2. . .. (pipe, concat)
3. || (or)
4. && (and)
5. = !=
6. < > <= >=      (right-recursive)
7. + -            (right-recursive)
8. * /            (right-recursive)
9. ! - (unary)
10. :: in (assignment)
11. () (call)
"""

from dataclasses import dataclass, field

from zy.errors import Position, Severity, ZyError
from zy.lexer import Lexer, Token, TokenType


# -----------------------------------------------------------------------------
# AST Node Types
# -----------------------------------------------------------------------------


@dataclass
class ASTNode:
    """Base class for AST nodes."""
    position: Position = field(default=Position(), kw_only=True, compare=False)


@dataclass
class NumberLiteral(ASTNode):
    value: float


@dataclass
class StringLiteral(ASTNode):
    value: str


@dataclass
class BoolLiteral(ASTNode):
    value: bool


@dataclass
class Nil(ASTNode):
    """The empty tuple `()`."""
    pass


@dataclass
class VariableRef(ASTNode):
    name: str


@dataclass
class ListLiteral(ASTNode):
    """List literal (e.g., [1, 2, 3])."""
    items: list[ASTNode]


@dataclass
class BinaryOp(ASTNode):
    """Binary operation (e.g., a + b, x . f)."""
    operator: str
    left: ASTNode
    right: ASTNode


@dataclass
class UnaryOp(ASTNode):
    """Unary operation (e.g., !x, -y)."""
    operator: str
    operand: ASTNode


@dataclass
class Call(ASTNode):
    """One parenthesized application step (e.g., f(a, b), or the (b) in f(a)(b))."""
    callee: ASTNode
    args: list[ASTNode]


@dataclass
class Assignment(ASTNode):
    """Mutation of an existing binding: `target :: value in next`."""
    target: ASTNode
    value: ASTNode
    next: ASTNode


@dataclass
class Sequence(ASTNode):
    """`first; second` - first is evaluated for effect only."""
    first: ASTNode
    second: ASTNode


@dataclass
class If(ASTNode):
    cond: ASTNode
    then: ASTNode
    otherwise: ASTNode


@dataclass
class LetBinding(ASTNode):
    """`let name :: value [in body] [and ...]`.

    next holds the following `and`-chained declaration, evaluated in the same
    scope after this one is bound.
    """
    name: str
    value: ASTNode
    body: ASTNode
    next: ASTNode | None = None


@dataclass
class FunctionDef(ASTNode):
    """`fn [name] [(params)] :: body [and ...] [end]`."""
    name: str | None
    params: list[str]
    body: ASTNode
    next: ASTNode | None = None


# -----------------------------------------------------------------------------
# Parser
# -----------------------------------------------------------------------------


class ParseError(ZyError):
    """Error during parsing. Always fatal."""

    def __init__(self, message: str, token: Token):
        self.token = token
        super().__init__(message, token.location, Severity.FATAL)


def _describe(token: Token) -> str:
    if token.type == TokenType.EOF:
        return "end of input"
    return f"'{token.value}'" if token.type != TokenType.STRING else f'"{token.value}"'


class Parser:
    """Recursive descent parser for Zy.

    Usage:
        parser = Parser('let f :: fn(x) :: x * 2 end in f(21)')
        ast = parser.parse()
    """

    def __init__(self, source: str):
        self.source = source
        self.lexer = Lexer(source)
        self._token = self.lexer.next_token()

    def parse(self) -> ASTNode:
        """Parse the whole source and return the AST root."""
        if self._is_at_end():
            raise ParseError("Expected an expression but got end of input", self._current())

        ast = self._parse_sequence()

        # Stray `end` keywords after a complete program are ignored
        while self._match(TokenType.END):
            self._advance()

        if not self._is_at_end():
            raise ParseError(f"Unexpected token {_describe(self._current())}", self._current())

        return ast

    @property
    def location(self) -> Position:
        """Position of the token the parser is looking at."""
        return self._token.location

    # -------------------------------------------------------------------------
    # Helper methods
    # -------------------------------------------------------------------------

    def _current(self) -> Token:
        """Get current token."""
        return self._token

    def _is_at_end(self) -> bool:
        return self._token.type == TokenType.EOF

    def _advance(self) -> Token:
        """Consume and return current token."""
        token = self._token
        if token.type != TokenType.EOF:
            self._token = self.lexer.next_token()
        return token

    def _match(self, *types: TokenType) -> bool:
        """Check if current token matches any of the given types."""
        return self._token.type in types

    def _consume(self, token_type: TokenType, message: str) -> Token:
        """Consume a token of the expected type, or raise error."""
        if self._token.type == token_type:
            return self._advance()
        raise ParseError(f"{message} but got {_describe(self._token)}", self._token)

    # -------------------------------------------------------------------------
    # Parsing methods (in order of precedence, lowest to highest)
    # -------------------------------------------------------------------------

    def _parse_sequence(self) -> ASTNode:
        """Parse `a; b` (right-nested)."""
        left = self._parse_pipe()

        if self._match(TokenType.SEMICOLON):
            self._advance()
            return Sequence(left, self._parse_sequence(), position=left.position)

        return left

    def _parse_pipe(self) -> ASTNode:
        """Parse pipe (.) and concat (..) expressions."""
        left = self._parse_or()

        while self._match(TokenType.PIPE, TokenType.CONCAT):
            op_token = self._advance()
            op = "." if op_token.type == TokenType.PIPE else ".."
            right = self._parse_or()
            left = BinaryOp(op, left, right, position=op_token.location)

        return left

    def _parse_or(self) -> ASTNode:
        left = self._parse_and()

        while self._match(TokenType.OR_OR):
            op_token = self._advance()
            right = self._parse_and()
            left = BinaryOp("||", left, right, position=op_token.location)

        return left

    def _parse_and(self) -> ASTNode:
        left = self._parse_equality()

        while self._match(TokenType.AND_AND):
            op_token = self._advance()
            right = self._parse_equality()
            left = BinaryOp("&&", left, right, position=op_token.location)

        return left

    def _parse_equality(self) -> ASTNode:
        """Parse equality expression (=, !=)."""
        left = self._parse_comparison()

        while self._match(TokenType.EQ, TokenType.NEQ):
            op_token = self._advance()
            op = "=" if op_token.type == TokenType.EQ else "!="
            right = self._parse_comparison()
            left = BinaryOp(op, left, right, position=op_token.location)

        return left

    def _parse_comparison(self) -> ASTNode:
        """Parse comparison expression (<, >, <=, >=). Right operand recurses."""
        left = self._parse_additive()

        comparison_ops = {
            TokenType.LT: "<",
            TokenType.GT: ">",
            TokenType.LTE: "<=",
            TokenType.GTE: ">=",
        }

        if self._current().type in comparison_ops:
            op_token = self._advance()
            right = self._parse_comparison()
            return BinaryOp(comparison_ops[op_token.type], left, right, position=op_token.location)

        return left

    def _parse_additive(self) -> ASTNode:
        """Parse additive expression (+, -). `a - b - c` is `a - (b - c)`."""
        left = self._parse_multiplicative()

        if self._match(TokenType.PLUS, TokenType.MINUS):
            op_token = self._advance()
            op = "+" if op_token.type == TokenType.PLUS else "-"
            right = self._parse_additive()
            return BinaryOp(op, left, right, position=op_token.location)

        return left

    def _parse_multiplicative(self) -> ASTNode:
        """Parse multiplicative expression (*, /). Right operand recurses."""
        left = self._parse_unary()

        if self._match(TokenType.MULTIPLY, TokenType.DIVIDE):
            op_token = self._advance()
            op = "*" if op_token.type == TokenType.MULTIPLY else "/"
            right = self._parse_multiplicative()
            return BinaryOp(op, left, right, position=op_token.location)

        return left

    def _parse_unary(self) -> ASTNode:
        """Parse unary expression (!, -). Binds looser than `::`."""
        if self._match(TokenType.NOT):
            op_token = self._advance()
            return UnaryOp("!", self._parse_unary(), position=op_token.location)

        if self._match(TokenType.MINUS):
            op_token = self._advance()
            return UnaryOp("-", self._parse_unary(), position=op_token.location)

        return self._parse_assignment()

    def _parse_assignment(self) -> ASTNode:
        """Parse `target :: value in body`. The target is checked when evaluated."""
        target = self._parse_call()

        if self._match(TokenType.DOUBLE_COLON):
            self._advance()
            value = self._parse_sequence()
            self._consume(TokenType.IN, "Expected 'in' after assigned value")
            body = self._parse_sequence()
            return Assignment(target, value, body, position=target.position)

        return target

    def _parse_call(self) -> ASTNode:
        """Parse postfix calls: f(a), f(a, b), f(a)(b)."""
        expr = self._parse_atom()

        while self._match(TokenType.LPAREN):
            self._advance()
            args: list[ASTNode] = []

            if not self._match(TokenType.RPAREN):
                args.append(self._parse_sequence())

                while self._match(TokenType.COMMA):
                    self._advance()
                    args.append(self._parse_sequence())

            self._consume(TokenType.RPAREN, "Expected ')' after arguments")
            expr = Call(expr, args, position=expr.position)

        return expr

    def _parse_atom(self) -> ASTNode:
        """Parse primary expression (declarations, literals, identifiers, groups)."""
        token = self._current()

        if token.type == TokenType.LET:
            return self._parse_let()

        if token.type == TokenType.FN:
            return self._parse_fn()

        if token.type == TokenType.IF:
            return self._parse_if()

        # Literals
        if token.type == TokenType.NUMBER:
            self._advance()
            return NumberLiteral(token.value, position=token.location)

        if token.type == TokenType.STRING:
            self._advance()
            return StringLiteral(token.value, position=token.location)

        if token.type == TokenType.BOOLEAN:
            self._advance()
            return BoolLiteral(token.value, position=token.location)

        if token.type == TokenType.IDENTIFIER:
            self._advance()
            return VariableRef(str(token.value), position=token.location)

        # Grouped expression, or () for Nil
        if token.type == TokenType.LPAREN:
            self._advance()
            if self._match(TokenType.RPAREN):
                self._advance()
                return Nil(position=token.location)
            expr = self._parse_sequence()
            self._consume(TokenType.RPAREN, "Expected ')' after expression")
            return expr

        if token.type == TokenType.LBRACKET:
            return self._parse_list_literal()

        raise ParseError(f"Expected an expression but got {_describe(token)}", token)

    def _parse_chained(self) -> ASTNode | None:
        """Parse an optional `and let ...` / `and fn ...` continuation."""
        if not self._match(TokenType.AND):
            return None

        self._advance()
        if not self._match(TokenType.LET, TokenType.FN):
            raise ParseError(
                f"Expected 'let' or 'fn' after 'and' but got {_describe(self._current())}",
                self._current(),
            )
        return self._parse_atom()

    def _parse_let(self) -> LetBinding:
        let_token = self._consume(TokenType.LET, "Expected 'let'")
        name = self._consume(TokenType.IDENTIFIER, "Expected a name after 'let'")
        self._consume(TokenType.DOUBLE_COLON, "Expected '::' after let name")
        value = self._parse_sequence()

        if self._match(TokenType.IN):
            self._advance()
            body = self._parse_sequence()
        else:
            body = Nil(position=value.position)

        return LetBinding(
            str(name.value), value, body, self._parse_chained(), position=let_token.location
        )

    def _parse_fn(self) -> FunctionDef:
        fn_token = self._consume(TokenType.FN, "Expected 'fn'")

        name = None
        if self._match(TokenType.IDENTIFIER):
            name = str(self._advance().value)

        params: list[str] = []
        if self._match(TokenType.LPAREN):
            self._advance()
            if not self._match(TokenType.RPAREN):
                params.append(str(self._consume(TokenType.IDENTIFIER, "Expected a parameter name").value))
                while self._match(TokenType.COMMA):
                    self._advance()
                    params.append(
                        str(self._consume(TokenType.IDENTIFIER, "Expected a parameter name").value)
                    )
            self._consume(TokenType.RPAREN, "Expected ')' after parameters")

        self._consume(TokenType.DOUBLE_COLON, "Expected '::' before function body")
        body = self._parse_sequence()
        chained = self._parse_chained()

        if self._match(TokenType.END):
            self._advance()

        return FunctionDef(name, params, body, chained, position=fn_token.location)

    def _parse_if(self) -> If:
        if_token = self._consume(TokenType.IF, "Expected 'if'")
        cond = self._parse_sequence()
        self._consume(TokenType.THEN, "Expected 'then' after condition")
        then = self._parse_sequence()
        self._consume(TokenType.ELSE, "Expected 'else' after then-branch")
        otherwise = self._parse_sequence()

        return If(cond, then, otherwise, position=if_token.location)

    def _parse_list_literal(self) -> ListLiteral:
        """Parse a list literal [a, b, c]."""
        lbracket = self._consume(TokenType.LBRACKET, "Expected '['")

        items: list[ASTNode] = []

        if not self._match(TokenType.RBRACKET):
            items.append(self._parse_sequence())

            while self._match(TokenType.COMMA):
                self._advance()
                items.append(self._parse_sequence())

        self._consume(TokenType.RBRACKET, "Expected ']' after list items")

        return ListLiteral(items, position=lbracket.location)


def parse(source: str) -> ASTNode:
    """Convenience function to parse a source string.

    Args:
        source: Zy source text

    Returns:
        The AST root node
    """
    return Parser(source).parse()
