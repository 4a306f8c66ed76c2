import argparse
import http.server
import logging
import os
from functools import partial
from http import HTTPStatus
from urllib.parse import unquote, urlsplit

from .config import ConfigError, ServerConfig
from .index import render_index
from .media import ResolveError, list_servable, resolve
from .negotiate import build_response
from .ranges import parse_range
from .streamer import DISCONNECT_ERRORS, IoFailure, StreamOutcome, open_servable, stream

logger = logging.getLogger(__name__)


class RangeRequestHandler(http.server.BaseHTTPRequestHandler):
    """Standard-library handler for the video directory with HTTP Range support."""
    server_version = 'reelserve'
    protocol_version = 'HTTP/1.1'

    def __init__(self, *args, config, server_url=None, **kwargs):
        self.config = config
        self.server_url = server_url
        super().__init__(*args, **kwargs)

    def do_GET(self):
        body = self.send_head()
        if body is None:
            return
        if isinstance(body, bytes):
            try:
                self.wfile.write(body)
            except DISCONNECT_ERRORS:
                self.close_connection = True
        else:
            self.copyfile(body, self.wfile)

    def do_HEAD(self):
        self.send_head()

    def send_head(self):
        """Send status and headers; return the pending body, or None when there is none."""
        path = unquote(urlsplit(self.path).path)
        if path == '/':
            server_url = self.server_url or f'http://{self.headers.get("Host", "localhost")}'
            html = render_index(list_servable(self.config.video_dir), server_url).encode('utf-8')
            return self._send_html(HTTPStatus.OK, html)

        try:
            servable = resolve(self.config.video_dir, path.lstrip('/'))
        except ResolveError as e:
            logger.debug('Rejected %s: %s', path, e)
            return self._send_html(e.status, b'<h1>404 Not Found</h1>')

        descriptor = build_response(servable, parse_range(self.headers.get('Range'), servable.size))
        handle = None
        if descriptor.body_range is not None and self.command != 'HEAD':
            try:
                handle = open_servable(servable)
            except IoFailure as e:
                logger.warning('Cannot serve %s: %s', path, e.reason)
                html = b'<h1>404 Not Found</h1>' if e.status == 404 else b'<h1>500 Internal Server Error</h1>'
                return self._send_html(e.status, html)

        try:
            self.send_response(descriptor.status)
            for name, value in descriptor.headers.items():
                self.send_header(name, value)
            self.end_headers()
        except Exception:
            if handle is not None:
                handle.close()
            raise
        if handle is None:
            return None
        return servable, descriptor.body_range, handle

    def copyfile(self, source, outputfile):
        servable, body_range, handle = source
        result = stream(servable, body_range, outputfile, self.config.chunk_size, handle)
        if result.outcome is not StreamOutcome.COMPLETE:
            # body is short of Content-Length; the connection cannot be reused
            self.close_connection = True

    def _send_html(self, status, html):
        self.send_response(status)
        self.send_header('Content-Type', 'text/html; charset=utf-8')
        self.send_header('Content-Length', str(len(html)))
        self.end_headers()
        return None if self.command == 'HEAD' else html

    def log_message(self, format, *args):
        logger.info('%s - %s', self.address_string(), format % args)


def make_server(config, server_url=None):
    handler = partial(RangeRequestHandler, config=config, server_url=server_url)
    return http.server.ThreadingHTTPServer((config.host, config.port), handler)


def run_server(config, server_url=None):
    with make_server(config, server_url) as httpd:
        host, port = httpd.server_address[:2]
        print(f"Serving HTTP on {host} port {port} (http://{host}:{port}/) ...")
        httpd.serve_forever()


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description='Video directory server with HTTP Range support')
    parser.add_argument('port', nargs='?', type=int, help='Port number')
    parser.add_argument('-d', '--directory', default=os.getcwd(), help='Directory to serve')
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO)
    try:
        config = ServerConfig.from_env().override(port=args.port, video_dir=args.directory).validate()
    except ConfigError as e:
        raise SystemExit(str(e))
    run_server(config)
