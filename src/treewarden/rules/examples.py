from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class RuleExample:
    language: str
    bad: str
    good: str | None = None
    notes: str | None = None


EXAMPLES: dict[str, RuleExample] = {
    "mocha-no-side-effect-code": RuleExample(
        language="typescript",
        bad=(
            "describe('cart', () => {\n"
            "    const cart = createCart();\n"
            "\n"
            "    it('starts empty', () => {\n"
            "        expect(cart.items).to.have.length(0);\n"
            "    });\n"
            "});\n"
        ),
        good=(
            "describe('cart', () => {\n"
            "    let cart: Cart;\n"
            "\n"
            "    beforeEach(() => {\n"
            "        cart = createCart();\n"
            "    });\n"
            "\n"
            "    it('starts empty', () => {\n"
            "        expect(cart.items).to.have.length(0);\n"
            "    });\n"
            "});\n"
        ),
        notes=(
            "Literals, functions, identifiers, `moment()` and `new Date()` are allowed at suite level. "
            "Use the `ignore` option to allow more calls by source text."
        ),
    ),
    "no-stateless-class": RuleExample(
        language="typescript",
        bad=(
            "class MathUtils {\n"
            "    static square(x: number): number {\n"
            "        return x * x;\n"
            "    }\n"
            "}\n"
        ),
        good="export function square(x: number): number {\n    return x * x;\n}\n",
        notes="Classes that extend another class are never reported.",
    ),
}
