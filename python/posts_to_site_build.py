#!/usr/bin/env python3
"""
Posts-to-Site

Check, render and export a directory of date-prefixed Markdown posts
(YYYY-MM-DD-slug.md) with YAML front-matter.

Usage:
    # Report malformed front-matter, unclosed code fences, date mismatches
    python posts_to_site_build.py --source ~/blog check

    # Same, and also request every external link
    python posts_to_site_build.py --source ~/blog check --check-links

    # Render the HTML site into _site/
    python posts_to_site_build.py --source ~/blog build

    # Write the post index
    python posts_to_site_build.py --source ~/blog export posts.yaml

    # Render all posts into a PDF book
    python posts_to_site_build.py --source ~/blog pdf blog.pdf --title "My Blog"

Configuration is read from _config.yml in the source directory. The
POSTS_TO_SITE_SOURCE and POSTS_TO_SITE_DESTINATION environment variables
override it; command line flags override both.
"""

import argparse
import logging
import sys

from posts_to_site import (
    BookRenderer,
    ConfigError,
    LinkChecker,
    PAPER_SIZES,
    PostError,
    SiteBuilder,
    check_posts,
    has_errors,
    load_config,
    load_posts,
    save_posts,
    setup_logging,
)

logger = logging.getLogger("posts_to_site.cli")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Check and render a directory of Markdown posts.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--source", default=None,
        help="Site directory holding _config.yml and _posts/ (default: current directory).",
    )
    parser.add_argument(
        "--config", default=None,
        help="Config file (default: SOURCE/_config.yml).",
    )
    parser.add_argument(
        "--posts-dir", default=None,
        help="Posts directory relative to SOURCE (default: _posts).",
    )
    parser.add_argument(
        "--debug", action="store_true",
        help="Turn on debug logging.",
    )
    parser.add_argument(
        "--quiet", action="store_true",
        help="Only log warnings and errors.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    check = subparsers.add_parser("check", help="Run content-integrity checks.")
    check.add_argument(
        "--check-links", action="store_true",
        help="Also request every external link (slow, needs network).",
    )
    check.add_argument(
        "--timeout", type=float, default=10,
        help="Link check timeout in seconds (default: 10).",
    )

    build = subparsers.add_parser("build", help="Render the HTML site.")
    build.add_argument(
        "--destination", default=None,
        help="Output directory (default: SOURCE/_site).",
    )

    export = subparsers.add_parser("export", help="Write the post index.")
    export.add_argument("output", help="Output file (.json, .yaml, .yml or .csv).")

    pdf = subparsers.add_parser("pdf", help="Render all posts into a PDF book.")
    pdf.add_argument("output", help="Output PDF file path.")
    pdf.add_argument(
        "--title", default=None,
        help="Book title (default: site title).",
    )
    pdf.add_argument(
        "--paper-size", default="letter", choices=sorted(PAPER_SIZES),
        help="Paper size (default: letter).",
    )
    return parser.parse_args(argv)


def run_check(config, args):
    checker = LinkChecker(timeout=args.timeout) if args.check_links else None
    issues = check_posts(config.posts_path, link_checker=checker)
    for issue in issues:
        print(issue)
    if has_errors(issues):
        return 1
    print("All posts passed." if not issues else f"{len(issues)} warning(s), no errors.")
    return 0


def run_build(config, args):
    if args.destination:
        config.destination = args.destination
    posts = load_posts(config.posts_path, default_layout=config.default_layout)
    SiteBuilder(config).build(posts)
    return 0


def run_export(config, args):
    posts = load_posts(config.posts_path, default_layout=config.default_layout)
    save_posts(posts, args.output)
    return 0


def run_pdf(config, args):
    posts = load_posts(config.posts_path, default_layout=config.default_layout)
    if not posts:
        print("No posts found.")
        return 0
    renderer = BookRenderer(
        title=args.title or config.title,
        output_path=args.output,
        paper_size=args.paper_size,
        image_root=config.source,
    )
    renderer.render(posts)
    return 0


COMMANDS = {
    "check": run_check,
    "build": run_build,
    "export": run_export,
    "pdf": run_pdf,
}


def main(argv=None):
    args = parse_args(argv)
    setup_logging(debug=args.debug, quiet=args.quiet)

    try:
        config = load_config(args.config, source=args.source)
        if args.posts_dir:
            config.posts_dir = args.posts_dir
        logger.debug("Using posts from %s", config.posts_path)
        status = COMMANDS[args.command](config, args)
    except (PostError, ConfigError, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(1)

    if status:
        raise SystemExit(status)
    return 0


if __name__ == "__main__":
    main()
