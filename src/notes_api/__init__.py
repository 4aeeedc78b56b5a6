"""
Notes backend package.

Storage synchronization layer (local slot or remote relational table) behind an
async notes service, exposed over a FastAPI app in `notes_api.main`.
"""
