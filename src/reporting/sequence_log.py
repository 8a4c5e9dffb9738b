"""
Sequence Log
============

Human-readable dispatch text derived from the pool and aggregates.

render_sequence_log() is pure: identical inputs give byte-identical text.
SequenceLogBuffer holds what the operator sees; operator edits never feed
back into the pool.
"""

from typing import Iterable, Optional

from allocation.engine import round_half_away
from resources.unit import Unit


NO_COMMIT = "NONE"


def _fmt(value: float) -> str:
    """Integral values without a decimal point, others as given."""
    if float(value).is_integer():
        return str(int(value))
    return f"{value:g}"


def render_unit_line(unit: Unit) -> str:
    return (
        f"#{unit.id}: P={round_half_away(unit.active_mw)}MW, "
        f"Q={round_half_away(unit.reac_mvar)}Mvar, "
        f"SOC={round_half_away(unit.soc)}%"
    )


def render_sequence_log(
    units: Iterable[Unit],
    total_p: float,
    total_q: float,
    last_commit: Optional[str] = None
) -> str:
    """
    Render the sequence log text.

    Args:
        units: Pool units; only enabled units are listed
        total_p: Aggregate P (MW)
        total_q: Aggregate Q (MVAR)
        last_commit: Timestamp of the last commit, if any

    Returns:
        Sequence log text
    """
    unit_lines = "\n".join(render_unit_line(u) for u in units if u.enabled)
    time_str = last_commit or NO_COMMIT
    return (
        f"START AT\nTIME: {time_str}\n\n"
        f"{unit_lines}\n\n"
        f"#TOTAL: P={_fmt(total_p)}MW, Q={_fmt(total_q)}Mvar"
    )


class SequenceLogBuffer:
    """
    Operator-visible sequence log.

    sync() follows the projection whenever the projection changes; between
    changes the operator's own text is kept. reset() discards edits.
    """

    def __init__(self, generated: str = ""):
        self._generated = generated
        self.text = generated

    @property
    def generated(self) -> str:
        return self._generated

    @property
    def edited(self) -> bool:
        return self.text != self._generated

    def sync(self, generated: str) -> str:
        if generated != self._generated:
            self._generated = generated
            self.text = generated
        return self.text

    def edit(self, text: str) -> str:
        self.text = text
        return self.text

    def reset(self) -> str:
        self.text = self._generated
        return self.text
