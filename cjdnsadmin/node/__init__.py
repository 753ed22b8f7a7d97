"""
cjdns-admin Node Module

Access to the local node's cjdroute.conf.
"""

from .conf import (
    CjdrouteConf,
    AdminBlock,
    AuthorizedPassword,
    ConfError,
    DEFAULT_CONF_PATH,
    strip_comments,
    parse_conf,
    read_conf,
    write_conf,
)

__all__ = [
    'CjdrouteConf',
    'AdminBlock',
    'AuthorizedPassword',
    'ConfError',
    'DEFAULT_CONF_PATH',
    'strip_comments',
    'parse_conf',
    'read_conf',
    'write_conf',
]
