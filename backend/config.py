import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///oche.sqlite3'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Rules
    TARGET_SCORE = int(os.environ.get('TARGET_SCORE', '301'))
    OVERTIME_INCREMENT = int(os.environ.get('OVERTIME_INCREMENT', '100'))
    # Minimum players before the first score is accepted
    MIN_PLAYERS = int(os.environ.get('MIN_PLAYERS', '2'))
    # Name of the single save slot
    SAVE_SLOT = os.environ.get('SAVE_SLOT', 'dartsGame')
    # How long clients keep a turn message on screen (seconds)
    MESSAGE_DURATION_SEC = int(os.environ.get('MESSAGE_DURATION_SEC', '3'))
    # Optional: debounce score submissions (ms). 0 disables.
    SUBMIT_DEBOUNCE_MS = int(os.environ.get('SUBMIT_DEBOUNCE_MS', '0'))
