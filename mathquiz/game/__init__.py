"""
Quiz game sessions.

A session couples one performance tracker with the question generator and
the round timer.
"""

from mathquiz.game.session import GameSession, GameSessionManager, RoundResult

__all__ = [
    'GameSession',
    'GameSessionManager',
    'RoundResult',
]
