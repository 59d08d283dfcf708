# scripts/create_code.py
import os  # read environment variables
import sys  # exit status
import argparse  # parse CLI args
import httpx  # call the running service

def main() -> None:  # main entrypoint
    parser = argparse.ArgumentParser()  # CLI parser
    parser.add_argument("--base-url", default=os.environ.get("SERIALGATE_URL", "http://127.0.0.1:8000"))  # service address
    parser.add_argument("--code")  # explicit code, generated by the server if omitted
    parser.add_argument("--expiry")  # e.g. 2d or 12h, server default is 7d
    parser.add_argument("--max-uses", type=int)  # server default is 1
    args = parser.parse_args()  # parse args

    token = os.environ.get("SERIALGATE_ADMIN_TOKEN")  # same value as admin_token in config.json
    if not token:
        sys.exit("SERIALGATE_ADMIN_TOKEN is not set")

    body = {}  # only send what was asked for
    if args.code:
        body["code"] = args.code
    if args.expiry:
        body["expiry"] = args.expiry
    if args.max_uses is not None:
        body["max_uses"] = args.max_uses

    r = httpx.post(
        f"{args.base_url}/api/create",
        json=body,
        headers={"X-Admin-Token": token},
        timeout=5.0,
    )
    print(r.text.strip())  # server response, success or error
    if r.status_code != 201:
        sys.exit(1)

if __name__ == "__main__":  # run as script
    main()  # call main
