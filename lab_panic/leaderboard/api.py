from datetime import datetime, timezone

from flask import Blueprint, current_app, jsonify, render_template_string, request

from lab_panic.leaderboard import get_service
from lab_panic.leaderboard.errors import ShareNotFound

api = Blueprint('api', __name__)
share = Blueprint('share', __name__)

SHARE_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Lab Panic - {{ entry.player_name }} Score</title>
    <meta property="og:title" content="Lab Panic - {{ entry.player_name }} Score">
    <meta property="og:description" content="{{ entry.player_name }} scored {{ score_text }} points in Lab Panic!">
    <meta property="og:type" content="website">
    <meta property="og:url" content="{{ page_url }}">
    <style>
        body { font-family: monospace; background: #0f0f23; color: #fff; text-align: center; padding: 20px; }
        .share-card { display: inline-block; padding: 2rem; border: 2px solid #00ff88; border-radius: 15px; }
        .score { font-size: 3rem; color: #00ff88; margin: 1rem 0; }
        .player-name { font-size: 1.5rem; color: #88aaff; }
    </style>
</head>
<body>
    <div class="share-card">
        <h1>Lab Panic</h1>
        <div class="player-name">{{ entry.player_name }}</div>
        <div class="score">{{ score_text }} points</div>
        <p>Play now and try to beat this score!</p>
        <a href="/">PLAY NOW</a>
    </div>
</body>
</html>
"""


def _base_url() -> str:
    return current_app.config.get('PUBLIC_BASE_URL') or request.host_url


@api.route('/health')
def health():
    sessions, scores = get_service().store.counts()
    return jsonify({
        'status': 'ok',
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'sessions': sessions,
        'scores': scores,
        'environment': current_app.config.get('APP_ENV'),
    })


@api.route('/version')
def version():
    return jsonify({'version': current_app.config.get('APP_VERSION')})


@api.route('/sessions/start', methods=['POST'])
def start_session():
    data = request.get_json(silent=True) or {}
    session = get_service().start_session(data.get('platform'))
    current_app.logger.info(f"[session-start] id={session.session_id} platform={session.platform}")
    return jsonify({
        'session_id': session.session_id,
        'start_token': session.token,
        'started_at': session.created_at.isoformat(),
        'expires_at': session.expires_at.isoformat(),
    })


@api.route('/scores', methods=['POST'])
def submit_score():
    data = request.get_json(silent=True) or {}
    result = get_service().submit_score(
        session_id=data.get('session_id'),
        token=data.get('start_token'),
        player_name=data.get('player_name'),
        score=data.get('score'),
        platform=data.get('platform'),
        base_url=_base_url(),
    )
    current_app.logger.info(
        f"[score-submit] player={result.entry.player_name} score={result.entry.score} "
        f"weekly_rank={result.weekly_rank} alltime_rank={result.alltime_rank}"
    )
    return jsonify(result.to_dict()), 201


@api.route('/leaderboard')
def get_leaderboard():
    page = get_service().get_leaderboard(
        request.args.get('scope'),
        limit=request.args.get('limit'),
        week=request.args.get('week'),
    )
    return jsonify(page.to_dict())


@api.route('/leaderboard/weeks')
def get_available_weeks():
    return jsonify({'weeks': get_service().get_available_weeks()})


@api.route('/share/<slug>')
def get_shared_score(slug):
    return jsonify(get_service().get_shared_score(slug).to_dict())


@share.route('/share/<slug>')
def share_page(slug):
    try:
        entry = get_service().get_shared_score(slug)
    except ShareNotFound:
        return 'Score not found', 404
    return render_template_string(
        SHARE_PAGE,
        entry=entry,
        score_text=f"{entry.score:,}",
        page_url=request.url,
    )
