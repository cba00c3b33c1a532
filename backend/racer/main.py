from flask import Blueprint, jsonify

from racer.engine.texts import DIFFICULTIES
from racer.services.leaderboard.scoring import DIFFICULTY_MULTIPLIERS, FILTERS

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Typing Racer leaderboard!', 'status': 'online'})


@main.route('/api/meta')
def meta():
    """Difficulty levels, their multipliers and the leaderboard filters."""
    return jsonify({
        'difficulties': list(DIFFICULTIES),
        'multipliers': {d: DIFFICULTY_MULTIPLIERS[d] for d in DIFFICULTIES},
        'filters': list(FILTERS),
    })
