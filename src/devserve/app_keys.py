"""Application keys for type-safe app configuration access."""

from aiohttp import web

from devserve.config import Config
from devserve.core.alias import AliasTable
from devserve.core.guard import AccessGuard
from devserve.logger import ServerLogger

config_key = web.AppKey("config", Config)
guard_key = web.AppKey("guard", AccessGuard)
aliases_key = web.AppKey("aliases", AliasTable)
server_logger_key = web.AppKey("server_logger", ServerLogger)
root_key = web.AppKey("root", str)
