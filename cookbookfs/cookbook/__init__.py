"""Cookbook model, loading, staging and upload."""

from cookbookfs.cookbook.version import CookbookVersion
from cookbookfs.cookbook.loader import CookbookVersionLoader
from cookbookfs.cookbook.uploader import CookbookUploader
from cookbookfs.cookbook.staging import StagingDirectory

__all__ = [
    "CookbookVersion",
    "CookbookVersionLoader",
    "CookbookUploader",
    "StagingDirectory",
]
