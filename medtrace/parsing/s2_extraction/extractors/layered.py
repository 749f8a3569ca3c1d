"""Многослойный payload: {"layers": [...], "metadata": {...}}"""

from typing import Any, Dict, List, Optional

from ....domain.exceptions import PayloadParseError
from .base import AbstractExtractor


class LayeredExtractor(AbstractExtractor):

    @property
    def name(self) -> str:
        return "LayeredExtractor"

    def extract(self, raw: str, decoded: Optional[Any] = None) -> Dict[str, Any]:
        payload = self._decode_json(raw, decoded)
        if not isinstance(payload, dict) or not isinstance(payload.get("layers"), list):
            raise PayloadParseError(message="Поле layers отсутствует", component=self.name)

        layers: List[Dict[str, Any]] = []
        for index, layer in enumerate(payload["layers"]):
            if isinstance(layer, dict):
                layers.append({
                    "layer": index,
                    "data": layer["data"] if "data" in layer else layer,
                    "checksum": layer.get("checksum"),
                    "dependencies": layer.get("dependencies") or [],
                })
            else:
                layers.append({"layer": index, "data": layer, "checksum": None, "dependencies": []})

        return {
            "total_layers": len(layers),
            "layers": layers,
            "metadata": payload.get("metadata") or {},
        }
