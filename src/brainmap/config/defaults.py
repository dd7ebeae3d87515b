"""
brainmap.config.defaults - Built-in configuration values.
"""

CONFIG_FILENAME = ".brainmap.toml"

DEFAULT_CONFIG = {
    "storage": {
        "data_dir": ".brainmap",
    },
    "auth": {
        # Empty means nobody is signed in: save/load raise AuthRequiredError
        "user": "",
    },
    "server": {
        "host": "127.0.0.1",
        "port": 5050,
    },
    "mindmap": {
        "default_title": "New Mind Map",
        "default_label": "New Idea",
        "visibility": "global",
        "root_position": [250.0, 250.0],
        "child_offset": [200.0, 50.0],
        "sibling_spacing": 80.0,
    },
    "converter": {
        "x": 250.0,
        "y_start": 50.0,
        "y_step": 100.0,
    },
}

CONFIG_TEMPLATE = """\
# brainmap configuration

[storage]
data_dir = ".brainmap"

[auth]
user = ""

[server]
host = "127.0.0.1"
port = 5050

[mindmap]
default_title = "New Mind Map"
default_label = "New Idea"
visibility = "global"   # or "last-toggle"

[converter]
x = 250.0
y_start = 50.0
y_step = 100.0
"""
