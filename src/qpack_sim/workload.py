from typing import List

import numpy as np

from qpack_sim.codec import Header

AUTHORITIES = ["www.example.com", "static.example.com", "api.example.com",
               "cdn.example.net"]
RESOURCE_TYPES = [("/img/", ".png", "image/webp,image/*,*/*;q=0.8"),
                  ("/js/", ".js", "*/*"),
                  ("/css/", ".css", "text/css,*/*;q=0.1"),
                  ("/v1/items/", "", "application/json")]
USER_AGENT = ("Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
              "(KHTML, like Gecko) Chrome/118.0 Safari/537.36")


def generate_requests(n_requests: int, seed: int = 42,
                      cookie_change_prob: float = 0.05) -> List[List[Header]]:
    """Generate browsing-like request header sets.

    Cookies change now and then, which keeps inserting fresh entries into the
    dynamic table and eventually forces evictions.
    """
    rng = np.random.default_rng(seed)
    cookies = {authority: f"sid={rng.integers(1 << 32):08x}"
               for authority in AUTHORITIES}
    requests = []
    for _ in range(n_requests):
        authority = AUTHORITIES[int(rng.integers(len(AUTHORITIES)))]
        prefix, suffix, accept = RESOURCE_TYPES[int(rng.integers(len(RESOURCE_TYPES)))]
        if rng.random() < cookie_change_prob:
            cookies[authority] = f"sid={rng.integers(1 << 32):08x}"
        path = f"{prefix}{rng.integers(10000)}{suffix}"
        requests.append([
            (":method", "GET"),
            (":scheme", "https"),
            (":authority", authority),
            (":path", path),
            ("user-agent", USER_AGENT),
            ("accept", accept),
            ("accept-encoding", "gzip, deflate"),
            ("cookie", cookies[authority]),
        ])
    return requests
