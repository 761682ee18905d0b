import datetime
import os
import tempfile
import threading

# Use system temp directory so runs from different shards don't fight over cwd
LOG_DIR = os.path.join(tempfile.gettempdir(), "faast_outputs")
LOG_PATH = os.path.join(LOG_DIR, "faast_log.txt")

# workers and the result loop can log at the same time
_log_lock = threading.Lock()


def log_message(text, log_path=None):
    path = log_path or LOG_PATH
    os.makedirs(os.path.dirname(path), exist_ok=True)

    timestamp = datetime.datetime.now().strftime("%Y-%m-%d %H:%M:%S")

    with _log_lock:
        with open(path, "a", encoding="utf-8") as f:
            f.write(f"[{timestamp}] {text}\n")
