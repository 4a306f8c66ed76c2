"""reelserve command-line interface."""

import argparse
import logging
import socket

from .app import create_app
from .config import ConfigError, ServerConfig
from .range_http_server import run_server


def get_local_ip():
    """LAN address of this host, as other devices on the network would reach it.

    Connecting a UDP socket sends nothing; it only makes the kernel pick the
    outbound interface.
    """
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
            s.connect(('8.8.8.8', 80))
            return s.getsockname()[0]
    except OSError:
        return 'localhost'


def build_parser():
    parser = argparse.ArgumentParser(prog='reelserve', description='A simple video streaming server')
    parser.add_argument('-p', '--port', type=int, help='Port to listen on (default: 6969)')
    parser.add_argument('--host', help='Host address to bind to (default: 0.0.0.0)')
    parser.add_argument('-v', '--video-dir', help='Directory containing video files (default: .)')
    parser.add_argument('--chunk-size', type=int, help='Bytes read per chunk while streaming')
    parser.add_argument('--log-level', help='DEBUG, INFO, WARNING or ERROR')
    parser.add_argument(
        '--backend',
        choices=('flask', 'stdlib'),
        default='flask',
        help='Serve with the threaded Flask server or the standard-library ThreadingHTTPServer',
    )
    return parser


def load_config(args):
    """Environment settings overridden by whatever was given on the command line."""
    return ServerConfig.from_env().override(
        port=args.port,
        host=args.host,
        video_dir=args.video_dir,
        chunk_size=args.chunk_size,
        log_level=args.log_level.upper() if args.log_level else None,
    ).validate()


def main(argv=None):
    args = build_parser().parse_args(argv)
    try:
        config = load_config(args)
    except ConfigError as e:
        raise SystemExit(f"❌ {e}")

    logging.basicConfig(
        level=config.log_level,
        format='%(asctime)s %(levelname)-8s %(name)s: %(message)s',
    )

    server_url = f"http://{get_local_ip()}:{config.port}"
    print(f"Starting video server on {config.host}:{config.port}")
    print(f"Video directory: {config.video_dir}")
    print(f"Server URL: {server_url}")

    if args.backend == 'stdlib':
        run_server(config, server_url)
    else:
        create_app(config, server_url).run(host=config.host, port=config.port, threaded=True)


if __name__ == '__main__':
    main()
