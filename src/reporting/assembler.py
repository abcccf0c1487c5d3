from typing import Any, Dict, List, Optional
from fastapi.encoders import jsonable_encoder
from .recommendations import Recommendations

class Assemble:
    """
    Shapes a CheckResult into one consistent JSON response (CLI --json and HTTP).

    Design intent:
      - The check focuses on detection (API records, live DNS, proxy ranges)
      - The assembler is responsible for the response format:
          - JSON-safe output
          - recommendations
          - summary (Nagios status, exit code, counts)
    """

    def build(
        self,
        target: str,
        result: Any,
        meta: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Build a unified response.

        Args:
            target: The hostname checked (already validated/normalized upstream).
            result: A CheckResult (anything with to_dict() works).
            meta: Optional metadata (version, source, ...).

        Returns:
            A dict containing only JSON-safe values.
        """
        result_json = self._to_json(result)
        # Anything that is not a dict carries no findings; treat it as empty.
        if not isinstance(result_json, dict):
            result_json = {}

        findings = result_json.get("findings") or []
        findings = [f for f in findings if isinstance(f, dict)]
        self._attach_recommendations(findings)

        response: Dict[str, Any] = {
            "target": target,
            "status": result_json.get("overall", "unknown"),
            "proxied": result_json.get("proxied", False),
            "zone": result_json.get("zone"),
            "findings": findings,
            "summary": self._summarize(findings, getattr(result, "exit_code", None)),
            "observations": result_json.get("observations", {}),
            "meta": meta or {},
        }

        return jsonable_encoder(response)

    def _to_json(self, obj: Any) -> Any:
        if hasattr(obj, "to_dict"):
            return jsonable_encoder(obj.to_dict())
        return jsonable_encoder(obj)

    def _attach_recommendations(self, findings: List[Dict[str, Any]]) -> None:
        """Best effort: an unknown issue simply gets no recommendation."""
        for f in findings:
            issue = (f.get("issue") or "").strip()
            f["recommendation"] = Recommendations.recommend(issue) if issue else ""

    def _summarize(self, findings: List[Dict[str, Any]], exit_code: Optional[int]) -> Dict[str, Any]:
        # Known buckets ensure the response always has consistent keys.
        counts = {"ok": 0, "warning": 0, "critical": 0, "unknown": 0}

        for f in findings:
            sev = f.get("severity")
            sev = sev.lower() if isinstance(sev, str) else "unknown"
            counts[sev] = counts.get(sev, 0) + 1

        problems = sum(v for k, v in counts.items() if k != "ok")
        return {"findings": len(findings), "problems": problems, **counts, "exit_code": exit_code}
