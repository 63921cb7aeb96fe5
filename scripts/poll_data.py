import argparse
import time

import httpx


def fetch_data(client: httpx.Client, base_url: str) -> dict:
    resp = client.get(f"{base_url}/data")
    resp.raise_for_status()
    return resp.json()


def format_line(data: dict) -> str:
    parts = []
    for product, points in data.items():
        if points:
            parts.append(f"{product}={points[-1]['Price']:.2f} (n={len(points)})")
        else:
            parts.append(f"{product}=loading")
    return " | ".join(parts)


def main():
    parser = argparse.ArgumentParser(description="Poll a running pricewatch server and print latest prices.")
    parser.add_argument("--base-url", default="http://localhost:8000")
    parser.add_argument("--interval", type=float, default=1.0, help="Seconds between polls")
    parser.add_argument("--count", type=int, default=0, help="Stop after N polls (0 = forever)")
    args = parser.parse_args()

    polls = 0
    with httpx.Client(timeout=10) as client:
        while True:
            try:
                print(time.strftime("%H:%M:%S"), format_line(fetch_data(client, args.base_url)))
            except httpx.HTTPError as e:
                print(time.strftime("%H:%M:%S"), "poll failed:", e)

            polls += 1
            if args.count and polls >= args.count:
                break
            time.sleep(args.interval)


if __name__ == "__main__":
    main()
