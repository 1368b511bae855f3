import logging
import math
import re
from typing import List, Optional, Sequence, Union

from ..config import SchedulingDefaultConfig

logger = logging.getLogger(__name__)

_STEP_RE = re.compile(r'^(\d+(?:\.\d+)?|\.\d+)([smhd]?)$', re.IGNORECASE)

_UNIT_MINUTES = {'': 1, 'm': 1, 'h': 60, 'd': SchedulingDefaultConfig.MINUTES_PER_DAY}


class StepParser:
    """Parses learning/relearning step strings like "1m 10m 1d" into minutes."""

    @staticmethod
    def parse(steps: Union[str, Sequence, None]) -> List[int]:
        """
        Parse a whitespace-separated step string into minute offsets.

        Bare numbers are minutes; `m`, `h`, `d` and `s` suffixes are accepted.
        Seconds round up to whole minutes. An unparsable token becomes the
        1-minute default and a warning is logged. Empty input gives [].
        """
        if steps is None:
            return []
        if isinstance(steps, (list, tuple)):
            tokens = [str(s).strip() for s in steps]
        else:
            tokens = str(steps).split()

        result = []
        for token in tokens:
            if not token:
                continue
            match = _STEP_RE.match(token)
            if not match:
                logger.warning(f"[STEPS] Unparsable step '{token}', using {SchedulingDefaultConfig.DEFAULT_STEP_MINUTES}m")
                result.append(SchedulingDefaultConfig.DEFAULT_STEP_MINUTES)
                continue

            value = float(match.group(1))
            unit = match.group(2).lower()
            if unit == 's':
                minutes = math.ceil(value / 60.0)
            else:
                minutes = round(value * _UNIT_MINUTES[unit])
            result.append(max(1, int(minutes)))
        return result

    @staticmethod
    def delay_for(steps: List[int], index: Optional[int]) -> int:
        """Minute delay of step `index` (clamped into range); 1 minute when there are no steps."""
        if not steps:
            return SchedulingDefaultConfig.DEFAULT_STEP_MINUTES
        index = 0 if index is None else index
        return steps[max(0, min(index, len(steps) - 1))]

    @staticmethod
    def hard_delay(steps: List[int], index: Optional[int]) -> float:
        """
        Delay for Hard: repeat the current step. On the first step use the
        mean of the first two steps, or 1.5x a lone step capped at +1 day.
        """
        index = max(0, index or 0)
        if not steps:
            return SchedulingDefaultConfig.DEFAULT_STEP_MINUTES
        if index > 0:
            return StepParser.delay_for(steps, index)
        if len(steps) >= 2:
            return (steps[0] + steps[1]) / 2.0
        return min(steps[0] * SchedulingDefaultConfig.HARD_SINGLE_STEP_FACTOR,
                   steps[0] + SchedulingDefaultConfig.MINUTES_PER_DAY)
