import os

from pydantic import BaseModel, ConfigDict

DEFAULT_CDN_HOST = "unpkg.com"
DEFAULT_NPM_EXECUTABLE = "npm"
DEFAULT_STAGING_DIR_NAME = ".sourcemap-publish"
DEFAULT_DIST_TAG = "sourcemaps"
DEFAULT_SOURCE_PATHS = ("dist/",)

# Copied into the stage alongside the source paths so the registry client sees
# the same manifest and credentials it would in the project directory.
FILES_TO_KEEP = ("package.json", ".npmrc", ".npmignore")


class PublisherSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    cdn_host: str = DEFAULT_CDN_HOST
    npm_executable: str = DEFAULT_NPM_EXECUTABLE
    staging_dir_name: str = DEFAULT_STAGING_DIR_NAME
    dist_tag: str = DEFAULT_DIST_TAG

    @classmethod
    def from_env(cls) -> "PublisherSettings":
        return cls(
            cdn_host=os.getenv("SOURCEMAP_PUBLISHER_CDN_HOST", DEFAULT_CDN_HOST),
            npm_executable=os.getenv("SOURCEMAP_PUBLISHER_NPM", DEFAULT_NPM_EXECUTABLE),
            staging_dir_name=os.getenv("SOURCEMAP_PUBLISHER_STAGING_DIR", DEFAULT_STAGING_DIR_NAME),
            dist_tag=os.getenv("SOURCEMAP_PUBLISHER_DIST_TAG", DEFAULT_DIST_TAG),
        )
