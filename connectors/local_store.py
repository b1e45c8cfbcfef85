# portal_vendas/connectors/local_store.py
import os
import json
import logging
import tempfile
import threading

logger = logging.getLogger(__name__)


class LocalStore:
    """
    Persistent key-value store backed by a single JSON file.
    Each key holds one JSON value (usually an array of rows), mirroring what the
    browser keeps in localStorage. With path=None the store lives in memory only.

    One instance is shared by every browser session of the process, so all access
    goes through `lock`. It is reentrant: callers doing a read-modify-write may hold
    it around their own get_item/set_item pair.
    """

    def __init__(self, path=None):
        self.path = path
        self.lock = threading.RLock()
        self._data = self._load(path) if path and os.path.exists(path) else {}

    @staticmethod
    def _load(path):
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (ValueError, OSError) as e:
            # ValueError covers both bad JSON and bad UTF-8
            logger.error(f"Local store file {path} could not be read, starting empty: {e}")
            return {}
        if not isinstance(data, dict):
            logger.error(f"Local store file {path} does not hold a JSON object, starting empty.")
            return {}
        logger.info(f"Loaded local store from {path} ({len(data)} keys).")
        return data

    def get_item(self, key, default=None):
        with self.lock:
            if key not in self._data:
                return default
            # Hand out copies so callers never mutate the stored value in place
            return json.loads(json.dumps(self._data[key]))

    def set_item(self, key, value):
        with self.lock:
            self._data[key] = json.loads(json.dumps(value))
            self._flush()

    def remove_item(self, key):
        with self.lock:
            if self._data.pop(key, None) is not None:
                self._flush()

    def keys(self):
        with self.lock:
            return list(self._data.keys())

    def _flush(self):
        if not self.path:
            return
        directory = os.path.dirname(self.path) or "."
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".local_store-", suffix=".tmp")
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(self._data, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        except OSError:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
