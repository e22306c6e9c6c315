from flask import Blueprint, jsonify, current_app

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({
        'message': 'Welcome to the oche scorekeeper!',
        'target_score': current_app.config.get('TARGET_SCORE', 301),
    })
