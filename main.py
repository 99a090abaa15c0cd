"""Command line entrypoint: ask the stylist one question and print the reply."""

import argparse

from stylist_app.app import WardrobeStylistApp


def main() -> None:
    parser = argparse.ArgumentParser(description="Ask the wardrobe stylist what to wear.")
    parser.add_argument("message", nargs="?", default="What should I wear today?")
    parser.add_argument("--quiet", action="store_true", help="Hide progress messages")
    args = parser.parse_args()

    app = WardrobeStylistApp()
    on_log = None if args.quiet else (lambda text: print(f"... {text}"))
    reply = app.chat(args.message, on_log=on_log, on_image=lambda url: print(f"[image] {url}"))
    print(reply)


if __name__ == "__main__":
    main()
