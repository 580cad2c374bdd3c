#!/usr/bin/env python3
"""
Save a cookie jar to disk and restore it in a fresh jar.
"""

import os
import tempfile

from persistjar import CookieJar, Origin


def main():
    origin = Origin.from_url("https://www.example.com/login")

    jar = CookieJar()
    # Simulate the Set-Cookie headers of a login response.
    jar.set_from_headers(
        [
            ("Set-Cookie", "SID=abc123; Path=/; Secure; HttpOnly"),
            ("Set-Cookie", "PREF=dark; Max-Age=3600"),
        ],
        origin,
    )
    print("Before save:", jar.cookie_header(origin))

    path = os.path.join(tempfile.mkdtemp(), "cookies.json")
    jar.save(path)
    print(f"Saved {len(jar)} origin(s) to {path}")

    restored = CookieJar()
    restored.load(path)
    print("After load: ", restored.cookie_header(origin))
    print()
    print(restored)


if __name__ == "__main__":
    main()
