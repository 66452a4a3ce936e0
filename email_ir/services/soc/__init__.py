"""
Email IR SOC Module

Response playbooks used to complete recommended actions.
"""

from .playbooks import PlaybookStep, PLAYBOOKS, get_playbook, actions_for

__all__ = [
    'PlaybookStep',
    'PLAYBOOKS',
    'get_playbook',
    'actions_for',
]
