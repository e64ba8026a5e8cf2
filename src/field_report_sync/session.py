# -*- coding: utf-8 -*-
"""
Per-sign-in session state for field report sync.

The session owns the Graph client and a cache of everything that is expensive
to rediscover: the resolved site/list/drive IDs, the last-read list schema and
the choice values used to pre-fill the report form. Two writers touch the
cache, the submission flow and the background "prime choices" pass, so every
write is tagged with the cache generation it started from. Signing in or out
bumps the generation; a write carrying an older generation is dropped.
"""

import threading
from concurrent.futures import ThreadPoolExecutor

from .activity import ActivityLog
from .auth import TokenProvider
from .columns import introspect
from .exceptions import ReportSyncError
from .graph_api import GraphClient
from .resolver import resolve_drive, resolve_list, resolve_site
from .utils import is_debug_enabled


class SessionCache:
    """Generation-guarded cache of resolved resources and schema"""

    FIELDS = ('site_id', 'list_id', 'drive_id', 'schema', 'location_choices', 'title_choices', 'primed')

    def __init__(self):
        self._lock = threading.Lock()
        self._generation = 0
        self._values = self._empty()

    @classmethod
    def _empty(cls):
        values = {name: None for name in cls.FIELDS}
        values['primed'] = False
        return values

    @property
    def generation(self):
        with self._lock:
            return self._generation

    def get(self, name):
        with self._lock:
            return self._values[name]

    def snapshot(self):
        """Copy of the cached values plus the generation they belong to."""
        with self._lock:
            data = dict(self._values)
            data['generation'] = self._generation
            return data

    def update(self, generation, **values):
        """
        Apply values if the cache is still on the given generation.

        Within a generation the last write wins.

        Returns:
            bool: True if applied, False if the write was stale and dropped
        """
        unknown = set(values) - set(self.FIELDS)
        if unknown:
            raise KeyError(f"Unknown session cache field(s): {', '.join(sorted(unknown))}")
        with self._lock:
            if generation != self._generation:
                return False
            self._values.update(values)
            return True

    def invalidate(self):
        """
        Clear everything and start a new generation.

        Returns:
            int: The new generation
        """
        with self._lock:
            self._generation += 1
            self._values = self._empty()
            return self._generation


class ReportSession:
    """Graph access plus cached resolution for one signed-in user"""

    def __init__(self, config, token_provider=None, client=None, http=None):
        """
        Args:
            config (Config): Validated configuration
            token_provider (TokenProvider): Defaults to one built from config
            client (GraphClient): Defaults to one built from config
            http: Optional HTTP session used by the client and the probes
        """
        self.config = config
        self.http = http
        self.token_provider = token_provider or TokenProvider(config)
        self.client = client or GraphClient(config, self.token_provider, http=http)
        self.cache = SessionCache()
        self._executor = None

    def new_log(self, echo=True):
        return ActivityLog(self.config.time_zone, echo=echo)

    def sign_in(self):
        """Interactive sign-in; any previously cached resolution is discarded."""
        user = self.token_provider.sign_in()
        self.cache.invalidate()
        return user

    def sign_out(self):
        self.token_provider.sign_out()
        self.cache.invalidate()

    def resolve_resources(self, log, generation=None):
        """
        Site, list and drive IDs, from the cache when present.

        Args:
            log (ActivityLog): Activity trace
            generation (int): Cache generation to write results under

        Returns:
            tuple: (site_id, list_id, drive_id)
        """
        snapshot = self.cache.snapshot()
        if generation is None:
            generation = snapshot['generation']

        site_id = snapshot['site_id'] or resolve_site(
            self.client, self.config.site_hostname, self.config.site_path, log
        )
        list_id = snapshot['list_id'] or resolve_list(self.client, site_id, self.config.list_name_or_id)
        drive_id = snapshot['drive_id'] or resolve_drive(self.client, site_id, self.config.drive_name_or_id)

        self.cache.update(generation, site_id=site_id, list_id=list_id, drive_id=drive_id)
        return site_id, list_id, drive_id

    def load_schema(self, site_id, list_id, generation=None):
        """Read the list schema and remember it as the last-read schema."""
        if generation is None:
            generation = self.cache.generation
        schema = introspect(self.client, site_id, list_id)
        self.cache.update(generation, schema=schema)
        return schema

    def prime_choices(self, log=None):
        """
        Resolve resources and read choice values ahead of the first submission.

        Best effort: failures are logged, never raised. If the session was
        invalidated while this ran, the result is discarded.

        Returns:
            bool: True if the result was stored in the cache
        """
        log = log if log is not None else self.new_log()
        generation = self.cache.generation
        try:
            site_id, list_id, drive_id = self.resolve_resources(log, generation)
            schema = introspect(self.client, site_id, list_id)
            fields = schema.resolve_report_fields()
            location_choices = schema.choices_for(fields['location']) if fields['location'] else []
            title_choices = schema.choices_for(fields['category']) if fields['category'] else []
        except ReportSyncError as e:
            self.cache.update(generation, primed=True, location_choices=None, title_choices=None)
            log.add(f"Choice preload failed - {e}")
            return False

        applied = self.cache.update(
            generation,
            schema=schema,
            location_choices=location_choices or None,
            title_choices=title_choices or None,
            primed=True
        )
        if not applied:
            if is_debug_enabled():
                print("[DEBUG] Session changed during choice preload; result discarded")
        return applied

    def start_priming(self, log=None):
        """
        Run prime_choices() on a background worker.

        Returns:
            concurrent.futures.Future: Resolves to prime_choices()'s result
        """
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="prime-choices")
        return self._executor.submit(self.prime_choices, log)

    def close(self):
        """Stop background work; anything still running is discarded."""
        self.cache.invalidate()
        if self._executor is not None:
            self._executor.shutdown(wait=False)
            self._executor = None
