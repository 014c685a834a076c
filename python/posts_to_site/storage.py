"""Save and load the post index to/from files (JSON, YAML, CSV)."""

import csv
import json
import logging
import os

import yaml

logger = logging.getLogger(__name__)

CSV_FIELDS = ["title", "date", "slug", "layout", "tags", "categories", "url", "path"]


def post_to_dict(post, url=None):
    """Index record for one post; the body is left out."""
    return {
        "title": post.title,
        "date": post.date.isoformat(),
        "slug": post.slug,
        "layout": post.layout,
        "tags": list(post.tags),
        "categories": list(post.categories),
        "languages": post.languages,
        "url": url,
        "path": post.path,
    }


def save_posts(posts, path, urls=None):
    """Save the post index. Format inferred from extension (.json, .yaml/.yml, .csv).

    ``urls`` optionally maps a post's path (or slug) to its URL.
    """
    ext = os.path.splitext(path)[1].lower()
    urls = urls or {}
    records = [post_to_dict(p, urls.get(p.path or p.slug)) for p in posts]

    if ext == ".json":
        with open(path, "w", encoding="utf-8") as f:
            json.dump(records, f, indent=2, ensure_ascii=False)
    elif ext in (".yaml", ".yml"):
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(records, f, default_flow_style=False,
                           allow_unicode=True, sort_keys=False)
    elif ext == ".csv":
        with open(path, "w", encoding="utf-8", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(CSV_FIELDS)
            for record in records:
                writer.writerow([
                    record["title"],
                    record["date"],
                    record["slug"],
                    record["layout"],
                    " ".join(record["tags"]),
                    " ".join(record["categories"]),
                    record["url"] or "",
                    record["path"] or "",
                ])
    else:
        raise ValueError(f"Unsupported file extension '{ext}'. Use .json, .yaml, .yml, or .csv.")

    logger.info("Saved %d posts to %s", len(records), path)


def load_posts_from_file(path):
    """Load index records from a JSON or YAML file, oldest first."""
    ext = os.path.splitext(path)[1].lower()

    if ext == ".json":
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    elif ext in (".yaml", ".yml"):
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    else:
        raise ValueError(f"Unsupported file extension '{ext}' for loading. Use .json, .yaml, or .yml.")

    records = list(data or [])
    records.sort(key=lambda r: str(r.get("date", "")))
    logger.info("Loaded %d posts from %s", len(records), path)
    return records
