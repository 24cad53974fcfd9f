"""
Asset Fallback Synthesizer.

When a worker has both static assets and its own fetch handler, the
simulator's asset layer answers every request itself and returns its own
404 on a miss, so the worker's handler is never reached. Deployed workers
behave differently: a missing asset falls through to the handler.

This module rebuilds the deployed behaviour out of plain workers:

    inbound request
         |
    asset-router ---- ASSET_STORE ----> asset-store   (serves the site files)
         |
         +-- on 404 -- ORIGIN --------> main          (original handler)

The asset binding is removed from the primary worker and, if it had a
binding name, replaced by a service binding of the same name pointing at
the store so the worker can still fetch assets explicitly.

The store and router bodies are JavaScript module templates; they run inside
the simulator and are never executed here.
"""

from __future__ import annotations

import json
import logging

from workerharness.errors import ReservedWorkerNameError

from .schemas import CompiledWorker

logger = logging.getLogger(__name__)

ROUTER_WORKER_NAME = "asset-router"
STORE_WORKER_NAME = "asset-store"
RESERVED_WORKER_NAMES = frozenset({ROUTER_WORKER_NAME, STORE_WORKER_NAME})

STORE_BINDING = "ASSET_STORE"
ORIGIN_BINDING = "ORIGIN"

DEFAULT_MIME_TYPE = "application/octet-stream"

MIME_TYPES: dict[str, str] = {
    "html": "text/html; charset=utf-8",
    "htm": "text/html; charset=utf-8",
    "css": "text/css; charset=utf-8",
    "js": "application/javascript; charset=utf-8",
    "mjs": "application/javascript; charset=utf-8",
    "json": "application/json; charset=utf-8",
    "map": "application/json; charset=utf-8",
    "txt": "text/plain; charset=utf-8",
    "xml": "application/xml; charset=utf-8",
    "svg": "image/svg+xml",
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "webp": "image/webp",
    "ico": "image/x-icon",
    "wasm": "application/wasm",
    "woff": "font/woff",
    "woff2": "font/woff2",
    "pdf": "application/pdf",
}

# The manifest maps site-relative paths to content-store keys; the simulator
# injects both when a worker has a sitePath.
STORE_SCRIPT_TEMPLATE = """
import manifestJSON from "__STATIC_CONTENT_MANIFEST";

const manifest = JSON.parse(manifestJSON);
const MIME_TYPES = __MIME_TYPES__;
const DEFAULT_MIME_TYPE = "__DEFAULT_MIME_TYPE__";

function lookup(path) {
  if (manifest[path] !== undefined) {
    return { path, key: manifest[path] };
  }

  const indexPath = (path === "" || path.endsWith("/"))
    ? `${path}index.html`
    : `${path}/index.html`;

  if (manifest[indexPath] !== undefined) {
    return { path: indexPath, key: manifest[indexPath] };
  }

  return null;
}

function mimeType(path) {
  const dot = path.lastIndexOf(".");
  if (dot === -1 || dot < path.lastIndexOf("/")) {
    return DEFAULT_MIME_TYPE;
  }
  return MIME_TYPES[path.slice(dot + 1).toLowerCase()] ?? DEFAULT_MIME_TYPE;
}

export default {
  async fetch(request, env) {
    const url = new URL(request.url);
    const path = decodeURIComponent(url.pathname).replace(/^\\/+/, "");

    const entry = lookup(path);
    if (entry !== null) {
      const body = await env.__STATIC_CONTENT.get(entry.key, "arrayBuffer");
      if (body !== null) {
        return new Response(body, {
          status: 200,
          headers: { "Content-Type": mimeType(entry.path) },
        });
      }
    }

    return new Response("Not found", { status: 404 });
  }
}
"""

ROUTER_SCRIPT_TEMPLATE = """
export default {
  async fetch(request, env) {
    const asset = await env.__STORE_BINDING__.fetch(request.clone());
    if (asset.status === 404) {
      return env.__ORIGIN_BINDING__.fetch(request);
    }
    return asset;
  }
}
"""


def store_script() -> str:
    """Module source for the asset-store worker."""
    return (
        STORE_SCRIPT_TEMPLATE
        .replace("__MIME_TYPES__", json.dumps(MIME_TYPES, indent=2))
        .replace("__DEFAULT_MIME_TYPE__", DEFAULT_MIME_TYPE)
    )


def router_script() -> str:
    """Module source for the router worker."""
    return (
        ROUTER_SCRIPT_TEMPLATE
        .replace("__STORE_BINDING__", STORE_BINDING)
        .replace("__ORIGIN_BINDING__", ORIGIN_BINDING)
    )


def apply_asset_workaround(workers: list[CompiledWorker]) -> None:
    """
    Replace the primary worker's asset binding with a router/store pair.

    Mutates workers in place. Does nothing when workers[0] has no asset
    binding, which also makes a second call a no-op.

    After this call the router is workers[0], the store is workers[1] and
    the original primary worker follows them; look it up by name, not by
    position.

    Args:
        workers: Compiled workers, primary worker first

    Raises:
        ReservedWorkerNameError: If a worker already uses a reserved name
    """
    if not workers:
        return

    main_worker = workers[0]
    assets = main_worker.assets
    if assets is None:
        return

    for worker in workers:
        if worker.name in RESERVED_WORKER_NAMES:
            raise ReservedWorkerNameError(worker.name)

    main_worker.assets = None

    store = CompiledWorker(
        name=STORE_WORKER_NAME,
        script=store_script(),
        site_path=assets.directory,
    )
    router = CompiledWorker(
        name=ROUTER_WORKER_NAME,
        script=router_script(),
        service_bindings={
            STORE_BINDING: STORE_WORKER_NAME,
            ORIGIN_BINDING: main_worker.name,
        },
    )

    if assets.binding:
        service_bindings = dict(main_worker.service_bindings or {})
        service_bindings[assets.binding] = STORE_WORKER_NAME
        main_worker.service_bindings = service_bindings

    for synthetic in (store, router):
        if main_worker.compatibility_date is not None:
            synthetic.compatibility_date = main_worker.compatibility_date
        if main_worker.compatibility_flags is not None:
            synthetic.compatibility_flags = list(main_worker.compatibility_flags)

    workers.insert(0, store)
    workers.insert(0, router)

    logger.info(
        f"[assets] Routed '{main_worker.name}' behind {ROUTER_WORKER_NAME} | "
        f"directory={assets.directory} | binding={assets.binding}"
    )
