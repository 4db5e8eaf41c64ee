"""
Utils package.

- Parsers for the legacy export files live in ``utils.parsers``.
- Storage contracts and the relational store live in ``utils.db``.
- Upload transports (JSON payloads, S3 prefixes) turn requests into
  ``UploadedFile`` lists for the batch import service.
"""
