"""Random base-conversion tasks with a verifiable answer."""

from __future__ import annotations

import random
import string

from toolcheck.types import Task

BASES: tuple[int, ...] = (2, 8, 10, 16)
BASE_NAMES: dict[int, str] = {2: "binary", 8: "octal", 10: "decimal", 16: "hexadecimal"}
MAX_VALUE = 0xFFFFFF
RANDOM_TASK_MARKER = "RANDOM_CONVERT_TASK"

_DIGITS = string.digits + string.ascii_uppercase


def render_in_base(value: int, base: int) -> str:
    """Render an integer in ``base`` (2..36) using uppercase digits."""
    if not 2 <= base <= len(_DIGITS):
        raise ValueError(f"base must be between 2 and {len(_DIGITS)}, got {base}")
    if value == 0:
        return "0"
    sign = "-" if value < 0 else ""
    value = abs(value)
    digits: list[str] = []
    while value:
        value, remainder = divmod(value, base)
        digits.append(_DIGITS[remainder])
    return sign + "".join(reversed(digits))


def render_prompt(given: str, from_base: int, via_base: int, to_base: int) -> str:
    source, middle, target = BASE_NAMES[from_base], BASE_NAMES[via_base], BASE_NAMES[to_base]
    return (
        f"Convert the {source} number {given} to {middle}, then convert that {middle} result to {target}. "
        f"Once the conversion is complete you must call the submit_answer tool with the final {target} "
        "result; the system will verify whether your answer is correct."
    )


class TaskGenerator:
    """Builds random three-base conversion tasks."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()  # noqa: S311

    def generate(self) -> Task:
        bases = list(BASES)
        self._rng.shuffle(bases)
        value = self._rng.randint(0, MAX_VALUE)
        return self.build(value, (bases[0], bases[1], bases[2]))

    @staticmethod
    def build(value: int, bases: tuple[int, int, int]) -> Task:
        from_base, via_base, to_base = bases
        if len(set(bases)) != 3:
            raise ValueError(f"bases must be distinct, got {bases}")
        given = render_in_base(value, from_base)
        return Task(
            prompt=render_prompt(given, from_base, via_base, to_base),
            expected_answer=render_in_base(value, to_base),
            given=given,
            value=value,
            from_base=from_base,
            via_base=via_base,
            to_base=to_base,
        )
