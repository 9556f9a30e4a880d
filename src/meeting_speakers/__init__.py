"""Meeting Speaker Mapping System.

Lets a user correct AI-guessed speaker identities in a meeting transcript:
- Editable speaker mappings with save/cancel semantics and validation
- Session-scoped overrides that can be reverted individually or in bulk
- Idle session expiry that purges all override state
- No durable storage of meeting data anywhere in the pipeline
"""

__version__ = "0.1.0"
