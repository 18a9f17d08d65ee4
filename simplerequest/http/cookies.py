import logging
from http.cookiejar import CookieJar, LoadError, MozillaCookieJar
from pathlib import Path

logger = logging.getLogger(__name__)


def load_cookie_file(jar: CookieJar, path: str) -> int:
    """
    Copy cookies stored at ``path`` (Netscape cookies.txt format) into ``jar``.

    A missing file is treated as an empty jar. Returns the number of cookies
    loaded.
    """
    if not Path(path).exists():
        logger.debug("Cookie file %s does not exist yet", path)
        return 0

    stored = MozillaCookieJar(path)
    try:
        stored.load(ignore_discard=True)
    except (LoadError, OSError) as exc:
        logger.warning("Ignoring unreadable cookie file %s: %s", path, exc)
        return 0

    count = 0
    for cookie in stored:
        jar.set_cookie(cookie)
        count += 1
    logger.debug("Loaded %d cookie(s) from %s", count, path)
    return count


def save_cookie_file(jar: CookieJar, path: str) -> int:
    """
    Write every cookie in ``jar``, session cookies included, to ``path``.

    Returns the number of cookies written, or -1 when the file could not be
    written.
    """
    stored = MozillaCookieJar(path)
    count = 0
    for cookie in jar:
        stored.set_cookie(cookie)
        count += 1

    try:
        stored.save(ignore_discard=True)
    except OSError as exc:
        logger.warning("Failed to write cookie file %s: %s", path, exc)
        return -1

    logger.debug("Saved %d cookie(s) to %s", count, path)
    return count
