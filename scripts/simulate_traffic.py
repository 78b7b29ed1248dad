"""
Send synthetic tracking traffic to a running collector over HTTP.
"""
import argparse
import random
import time

import requests

PAGES = [
    ("https://example.com/", "Home Page"),
    ("https://example.com/products", "Products"),
    ("https://example.com/pricing", "Pricing"),
    ("https://example.com/contact", "Contact"),
]
USER_AGENTS = [
    "Mozilla/5.0 (X11; Linux x86_64) Firefox/128.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 14_5) Safari/605.1.15",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) Chrome/126.0",
]


def simulate(base_url: str, count: int, delay: float, consent_rate: float):
    session = requests.Session()
    ok = limited = failed = 0
    for i in range(count):
        url, title = random.choice(PAGES)
        body = {
            "page": url,
            "title": title,
            "type": random.choices(["pageview", "click", "form_submit"], weights=[6, 3, 1])[0],
            "consentGiven": random.random() < consent_rate,
            "metadata": {"seq": i},
        }
        headers = {
            "User-Agent": random.choice(USER_AGENTS),
            "X-Forwarded-For": f"198.51.100.{random.randint(1, 20)}",
        }
        try:
            resp = session.post(f"{base_url}/api/v1/track", json=body, headers=headers, timeout=10)
        except requests.RequestException as e:
            failed += 1
            print(f"Request {i} failed: {e}")
            continue

        if resp.status_code == 200:
            ok += 1
        elif resp.status_code == 429:
            limited += 1
            retry_after = int(resp.headers.get("Retry-After", "1"))
            print(f"Rate limited, sleeping {retry_after}s")
            time.sleep(retry_after)
        else:
            failed += 1
            print(f"Request {i}: {resp.status_code} {resp.text}")
        time.sleep(delay)

    print(f"Done. ok={ok} rate_limited={limited} failed={failed}")


def main():
    parser = argparse.ArgumentParser(description="Simulate tracking traffic")
    parser.add_argument("--base-url", default="http://localhost:8000")
    parser.add_argument("--count", type=int, default=100)
    parser.add_argument("--delay", type=float, default=0.05)
    parser.add_argument("--consent-rate", type=float, default=0.8)
    args = parser.parse_args()
    simulate(args.base_url, args.count, args.delay, args.consent_rate)


if __name__ == "__main__":
    main()
