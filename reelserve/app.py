import logging

from flask import (
    Blueprint,
    Flask,
    Response,
    current_app,
    request,
)

from .config import ServerConfig
from .index import render_index
from .media import ResolveError, list_servable, resolve
from .negotiate import build_response
from .ranges import parse_range
from .streamer import IoFailure, iter_body, open_servable

logger = logging.getLogger(__name__)

NOT_FOUND_HTML = '<h1>404 Not Found</h1>'
SERVER_ERROR_HTML = '<h1>500 Internal Server Error</h1>'

bp = Blueprint('media', __name__)


def _config() -> ServerConfig:
    return current_app.config['REELSERVE']


def _server_url():
    return current_app.config.get('SERVER_URL') or request.host_url.rstrip('/')


@bp.route('/')
def index():
    """Landing page listing every servable file with its direct URL."""
    videos = list_servable(_config().video_dir)
    return Response(render_index(videos, _server_url()), content_type='text/html; charset=utf-8')


@bp.route('/<path:filename>')
def serve_video(filename):
    """Full or partial delivery of one video, depending on ``Range``."""
    config = _config()
    servable = resolve(config.video_dir, filename)
    decision = parse_range(request.headers.get('Range'), servable.size)
    descriptor = build_response(servable, decision)

    if descriptor.body_range is None:
        return Response(b'', status=descriptor.status, headers=descriptor.headers)

    # HEAD never reads the body, so only GET needs the file open up front
    handle = None if request.method == 'HEAD' else open_servable(servable)
    body = iter_body(servable, descriptor.body_range, config.chunk_size, handle)
    response = Response(
        body,
        status=descriptor.status,
        headers=descriptor.headers,
        direct_passthrough=True,
    )
    if handle is not None:
        response.call_on_close(handle.close)
    return response


@bp.app_errorhandler(ResolveError)
def resolve_failed(e):
    logger.debug('Rejected %s: %s', request.path, e)
    return NOT_FOUND_HTML, e.status, {'Content-Type': 'text/html'}


@bp.app_errorhandler(IoFailure)
def open_failed(e):
    logger.warning('Cannot serve %s: %s', request.path, e.reason)
    html = NOT_FOUND_HTML if e.status == 404 else SERVER_ERROR_HTML
    return html, e.status, {'Content-Type': 'text/html'}


def create_app(config=None, server_url=None):
    """Flask app serving ``config.video_dir``; ``config`` defaults to the environment."""
    if config is None:
        config = ServerConfig.from_env().validate()
    # no static route: every path below / may be a video name
    app = Flask(__name__, static_folder=None)
    app.config['REELSERVE'] = config
    app.config['SERVER_URL'] = server_url
    app.register_blueprint(bp)
    return app
