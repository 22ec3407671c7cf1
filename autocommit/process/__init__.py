# Process interaction for autocommit

from .push import Prompt, PushProcess, detect_prompt, describe_exit, run_push

__all__ = [
    'Prompt',
    'PushProcess',
    'detect_prompt',
    'describe_exit',
    'run_push'
]
