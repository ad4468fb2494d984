# src/config/features.py - v1
"""Declarative feature table.

Each entry names the backing table, the columns that hold file references,
the boolean "migrated" flag columns and the SQL emission pattern. Groups
list other features under ``includes``; a group without a table is a pure
alias. Loaded and validated by features/registry.py.
"""

from __future__ import annotations

from typing import Any

# Feature used for flat paths that carry no other hint.
DEFAULT_FEATURE = "topic"

# Folder name that routes flat paths to a secondary feature.
ALTERNATE_FOLDERS: dict[str, str] = {
    "members": "member",
}

FEATURE_TABLE: dict[str, dict[str, Any]] = {
    "topic": {
        "title": "Topic Management",
        "description": "Topic images (includes detail)",
        "table": "topic",
        "columns": ["pic"],
        "flags": ["is_migrate"],
        "sql_pattern": "single_column_with_flag",
        "includes": ["detail"],
        "combined_description": "Topic + Detail migration (combined processing)",
    },
    "detail": {
        "title": "Detail Content",
        "description": "Detail content attachments",
        "table": "detail",
        "columns": ["pic", "pic2", "pic3", "pic4", "pic5", "dfile"],
        "flags": [],
        "sql_pattern": "multiple_columns_temp_table",
        "secondary": True,
    },
    "member": {
        "title": "Member Management",
        "description": "Member profile pictures",
        "table": "pinoyphp_users",
        "columns": ["picture1"],
        "flags": ["is_migrate"],
        "sql_pattern": "single_column_with_flag",
    },
    "content": {
        "title": "Content Management",
        "description": "Content management images",
        "table": "content",
        "columns": ["featured_image", "thumbnail", "gallery_images"],
        "flags": ["is_migrated"],
        "sql_pattern": "default",
    },
    "product": {
        "title": "Product Catalog",
        "description": "Product catalog images",
        "table": "product",
        "columns": ["main_image", "image_2", "image_3", "image_4", "image_5"],
        "flags": ["migration_status"],
        "sql_pattern": "multiple_columns_simple",
    },
    "news": {
        "title": "News System",
        "description": "News and article images",
        "table": "news",
        "columns": ["cover_image", "content_images"],
        "flags": ["is_migrated"],
        "sql_pattern": "default",
    },
    "gallery": {
        "title": "Gallery System",
        "description": "Gallery and media",
        "table": "gallery",
        "columns": ["image_url", "thumbnail_url"],
        "flags": ["is_migrated"],
        "sql_pattern": "default",
    },
    "user": {
        "title": "User Profiles",
        "description": "User avatars and cover photos",
        "table": "users",
        "columns": ["avatar", "cover_photo"],
        "flags": ["avatar_migrated"],
        "sql_pattern": "default",
    },
    "all": {
        "title": "All Features",
        "description": "Every primary feature, one SQL file each",
        "includes": [
            "topic", "member", "content", "product", "news", "gallery", "user",
        ],
    },
}
