from typing import Dict, List, Optional

from pydantic import BaseModel


class ConvertRequest(BaseModel):
    # full Figma URL or a bare file key
    figma_url: str
    use_cache: bool = True


class ConvertMeta(BaseModel):
    fileKey: str
    name: Optional[str] = None
    lastModified: Optional[str] = None


class ConvertResponse(BaseModel):
    ok: bool = True
    meta: ConvertMeta
    stats: Dict[str, int]
    counts: Dict[str, int]
    warnings: List[str]
    downloadUrl: str
