from flask import Blueprint, jsonify

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'ok': True, 'message': 'QR hunt server is running'})
