"""Built-in CLI sub-commands for dartcache.

* :mod:`~dartcache.commands.cache` -- inspect and maintain the TTL cache.
* :mod:`~dartcache.commands.corp` -- import and search the corp-code dictionary.
* :mod:`~dartcache.commands.optimize` -- normalize a JSON payload.
* :mod:`~dartcache.commands.config` -- view and modify global settings.

Multi-command groups export a :class:`typer.Typer` sub-application; single
commands export a plain callback registered on the root app.
"""
