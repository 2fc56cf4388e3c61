"""Tender ingestion: fetch → parse → dedup → insert, with an audit log per run."""
