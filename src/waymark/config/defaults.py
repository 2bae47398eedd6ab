"""
waymark.config.defaults - Default configuration values.
"""

DEFAULT_CONFIG = {
    "graph": {
        # Documents live in <directory>/<name>.gv, relative to the config file
        "directory": ".waymark",
        "default": "main",
        "root_label": "root",
        "rankdir": "LR",
    },
    "selection": {
        "emphasis": "3",
        "normal": "1",
    },
    "chain": {
        "delimiter": "|",
    },
    "engine": {
        # auto: gvpr when it is on PATH, builtin otherwise
        "kind": "auto",
        "gvpr": "gvpr",
        "timeout": 10,
    },
    "editor": {
        "separator": " | ",
        "location_template": "edit {path} | call cursor({line}, {column})",
        # Empty: print the instruction on stdout for an editor plugin
        "command": [],
    },
    "renderer": {
        "command": ["xdot"],
    },
    "log": {
        # Empty: <graph.directory>/waymark.log
        "path": "",
    },
}
