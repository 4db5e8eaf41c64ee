"""
Classification of uploaded files into per-HOA groups.

Each upload name must look like ``{hoaExternalId}/{filename}`` where the file
name is one of the canonical export names. ``.wmb`` files travel with the
exports and are accepted but not processed.
"""
import logging
from typing import Dict, List, Optional, Sequence

from hoa_import.models.import_result import FileRole, ImportErrorDetail, ImportFileGroup, UploadedFile

logger = logging.getLogger(__name__)

FILE_ROLES: Dict[str, FileRole] = {
    'lok.txt': FileRole.APARTMENTS,
    'nal_czynsz.txt': FileRole.CHARGES,
    'pow_czynsz.txt': FileRole.NOTIFICATIONS,
    'wplaty.txt': FileRole.PAYMENTS,
}
PASS_THROUGH_SUFFIX = '.wmb'


def classify_file(file_name: str) -> Optional[FileRole]:
    """
    Map a bare file name onto its role.

    Returns:
        The role, or None for pass-through files

    Raises:
        ValueError: if the name is not a recognised export file
    """
    if file_name in FILE_ROLES:
        return FILE_ROLES[file_name]
    if file_name.endswith(PASS_THROUGH_SUFFIX):
        return None
    raise ValueError(
        f"Unrecognized file name: {file_name}. Expected one of {', '.join(FILE_ROLES)} or a {PASS_THROUGH_SUFFIX} file"
    )


def split_upload_path(name: str) -> List[str]:
    """
    Split an upload name into ``[hoa_external_id, file_name]``.

    Raises:
        ValueError: if the name has no directory component
    """
    parts = name.replace('\\', '/').split('/')
    if len(parts) < 2 or not parts[-2].strip() or not parts[-1].strip():
        raise ValueError(f"Invalid file path: {name}. Expected {{HOA_ID}}/lok.txt")
    return [parts[-2].strip(), parts[-1].strip()]


def group_files_by_hoa(files: Sequence[UploadedFile], errors: List[ImportErrorDetail]) -> Dict[str, ImportFileGroup]:
    """
    Group uploaded files by HOA external id.

    Files that cannot be classified are reported into ``errors`` and left
    out; the remaining files are still grouped. A later file with the same
    role for the same HOA replaces the earlier one.

    Args:
        files: Uploaded files in arrival order
        errors: List collecting per-file errors

    Returns:
        Mapping of HOA external id to its file group, in first-seen order
    """
    groups: Dict[str, ImportFileGroup] = {}

    for file in files:
        hoa_id = None
        try:
            hoa_id, file_name = split_upload_path(file.name)
            role = classify_file(file_name)
        except ValueError as e:
            logger.warning(f"Rejected uploaded file {file.name}: {str(e)}", extra={'hoa_id': hoa_id, 'file_name': file.name})
            errors.append(ImportErrorDetail(hoa_id=hoa_id, file=file.name, error=str(e)))
            continue

        group = groups.setdefault(hoa_id, ImportFileGroup())
        if role is None:
            logger.debug(f"Ignoring pass-through file {file.name}")
            continue
        group.set_file(role, file)

    return groups
