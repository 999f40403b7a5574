"""Supabase Storage bucket for uploaded overlay and template artwork."""

from dataclasses import dataclass

from supabase import Client

from event_photobooth.services.admin import BlobStorage


@dataclass
class SupabaseBlobStorage(BlobStorage):
    """Uploads files to a public Supabase Storage bucket."""

    client: Client
    bucket: str

    def upload(self, path: str, content: bytes, content_type: str) -> str:
        """Upload a file and return its public URL."""
        bucket = self.client.storage.from_(self.bucket)
        bucket.upload(
            path,
            content,
            file_options={"content-type": content_type, "upsert": "false"},
        )
        return bucket.get_public_url(path)
