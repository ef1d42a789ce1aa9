"""CI build status of a merge request version, read from the CI server."""

import logging
from typing import Any

import requests

from reviewit.services.store.schemas import Patch, Project

LOG = logging.getLogger("reviewit.services.ci_status")

UNKNOWN = {"status": "unknown"}


def ci_status_url(project: Project, build_ref: str) -> str:
    """Status URL of build_ref on the project's CI server.

    The patch's own ci_reference_hash is not used here; the configured
    build_ref is queried for every patch.
    """
    base = (project.ci_project_url or "").rstrip("/")
    return f"{base}/builds/{build_ref}/status.json?token={project.ci_token}"


def ci_status(
    project: Project,
    patch: Patch | None,
    build_ref: str,
    timeout: float = 2.0,
    session: requests.Session | None = None,
) -> dict[str, Any]:
    """Fetch build status; {"status": "unknown"} when the CI server can't tell.

    That covers a slow or unreachable server, an HTTP error and a body that
    is not a JSON object. Otherwise the result is the CI server's JSON with
    `url` pointing at the build page.
    """
    url = ci_status_url(project, build_ref)
    LOG.debug("CI status for patch %s: %s", patch.patch_id if patch else None, url)
    http = session or requests
    try:
        r = http.get(url, timeout=timeout)
        r.raise_for_status()
        result = r.json()
    except requests.Timeout:
        LOG.warning("CI status for %s timed out after %ss", project.name, timeout)
        return dict(UNKNOWN)
    except (requests.RequestException, ValueError) as e:
        LOG.warning("CI status for %s unavailable: %s", project.name, e)
        return dict(UNKNOWN)
    if not isinstance(result, dict):
        LOG.warning("CI status for %s is not a JSON object: %r", project.name, result)
        return dict(UNKNOWN)
    base = (project.ci_project_url or "").rstrip("/")
    result["url"] = f"{base}/builds/{result.get('id')}"
    return result
