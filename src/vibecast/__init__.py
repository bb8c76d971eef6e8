"""Upload-to-HLS transcoding service."""
