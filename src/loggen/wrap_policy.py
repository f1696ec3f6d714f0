from enum import Enum
from typing import Union


class WrapStrategy(Enum):
    """What happens to the output file when a pass over the sample completes."""

    TRUNCATE = 'truncate'
    APPEND = 'append'
    ROTATE = 'rotate'


class Action(Enum):
    CONTINUE_APPEND = 'continue_append'
    TRUNCATE_RESTART = 'truncate_restart'
    ROTATE_RESTART = 'rotate_restart'


_ACTIONS = {
    WrapStrategy.TRUNCATE: Action.TRUNCATE_RESTART,
    WrapStrategy.APPEND: Action.CONTINUE_APPEND,
    WrapStrategy.ROTATE: Action.ROTATE_RESTART,
}


def decide(strategy: Union[WrapStrategy, str]) -> Action:
    """
    Map a wrap strategy to the action the output sink performs at end of pass.

    Args:
        strategy: WrapStrategy member or its string value

    Returns:
        Action for the sink

    Raises:
        ValueError: unknown strategy
    """
    return _ACTIONS[WrapStrategy(strategy)]
