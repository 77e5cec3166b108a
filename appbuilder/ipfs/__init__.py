from .client import ContentStore, IpfsUploader, extract_cid

__all__ = [
    'ContentStore',
    'IpfsUploader',
    'extract_cid',
]
