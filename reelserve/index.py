from jinja2 import Environment

INDEX_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
    <title>reelserve</title>
    <style>
        body { font-family: Arial, sans-serif; margin: 40px; }
        h1 { color: #333; }
        .server-info { background-color: #e7f3ff; padding: 15px; border-radius: 5px; margin-bottom: 20px; }
        .video-list { list-style-type: none; padding: 0; }
        .video-item { margin: 10px 0; padding: 15px; background-color: #f5f5f5; border-radius: 5px; }
        .video-name { font-weight: bold; margin-bottom: 5px; }
        .video-url { font-size: 0.9em; color: #666; word-break: break-all; }
        .video-item a { text-decoration: none; color: #007bff; }
        .video-item a:hover { text-decoration: underline; }
    </style>
</head>
<body>
    <h1>reelserve</h1>
    <div class="server-info"><strong>Server URL:</strong> {{ server_url }}</div>
    {% if videos %}
    <ul class="video-list">
        {% for video in videos %}
        <li class="video-item">
            <div class="video-name">{{ video.name }} <small>({{ video.size|filesizeformat }})</small></div>
            <div class="video-url"><a href="{{ server_url }}{{ video.url_path }}" target="_blank">{{ server_url }}{{ video.url_path }}</a></div>
        </li>
        {% endfor %}
    </ul>
    {% else %}
    <p>No video files found in the directory.</p>
    {% endif %}
</body>
</html>
"""

_env = Environment(autoescape=True)
_template = _env.from_string(INDEX_TEMPLATE)


def render_index(videos, server_url):
    """HTML landing page for ``videos`` (ServableFile list) served at ``server_url``."""
    return _template.render(videos=videos, server_url=server_url)
