"""Document generator — renders the packaged HTML entry point.

generate_document() is a pure function of its inputs: no I/O, no
timestamps, no randomness, so identical inputs always produce identical
text. The document carries:

  - three overlays (loading, launch gate, error) and the #app mount point
  - the bootstrap script, verbatim
  - the runtime configuration as a JSON literal plus the calls applying it
  - the mode-specific fragments: where the project is fetched from and,
    for ZIP output, the resolver mapping assets to ./assets/<md5ext>
  - the boot sequence: progress → load → autoplay or launch gate, with
    every failure routed to the error overlay

Embedded values go through js_literal(), which JSON-encodes and then
escapes the characters that could terminate the surrounding <script>.
"""

import base64
import json
from dataclasses import dataclass
from typing import Any

from packager.packaging.types import OutputTarget, PackagingConfig

SB3_MEDIA_TYPE = "application/x.scratch.sb3"
ARCHIVE_ASSET_DIR = "assets"
ARCHIVE_PROJECT_PATH = f"./{ARCHIVE_ASSET_DIR}/project.json"

# Progress starts here and the asset loading phase fills the rest.
INITIAL_PROGRESS = 0.1

_JS_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
}


def js_literal(value: Any) -> str:
    """Encode a value as a JavaScript literal safe to inline in a <script>."""
    encoded = json.dumps(value)
    for char, escape in _JS_ESCAPES.items():
        encoded = encoded.replace(char, escape)
    return encoded


def project_data_url(project: bytes) -> str:
    """Encode a serialized project as a base64 data: URL."""
    return f"data:{SB3_MEDIA_TYPE};base64,{base64.b64encode(project).decode('ascii')}"


@dataclass
class ModeFragments:
    """The only parts of the document that depend on the output target."""

    project_source: str
    asset_resolver: str


def mode_fragments(target: OutputTarget, project: bytes) -> ModeFragments:
    """Build the project-source expression and asset resolver for a target.

    HTML output carries its assets inside the data URL, so it registers
    no resolver and never references the assets/ directory.
    """
    if target == OutputTarget.ZIP:
        return ModeFragments(
            project_source=ARCHIVE_PROJECT_PATH,
            asset_resolver=_ARCHIVE_ASSET_RESOLVER,
        )
    return ModeFragments(
        project_source=project_data_url(project),
        asset_resolver="",
    )


def generate_document(
    config: PackagingConfig,
    script: str,
    target: OutputTarget,
    project: bytes,
) -> str:
    """Render the complete HTML document for one packaging call.

    Args:
        config: Runtime options, embedded verbatim as a JSON literal.
        script: The bootstrap script, already escaped by the resource loader.
        target: Output mode; selects the project source and asset resolver.
        project: The serialized sb3 project (inlined only for HTML output).
    """
    fragments = mode_fragments(target, project)
    boot = (
        _BOOT_TEMPLATE
        .replace("__CONFIG__", js_literal(config.to_dict()))
        .replace("__INITIAL_PROGRESS__", js_literal(INITIAL_PROGRESS))
        .replace("__ASSET_RESOLVER__", fragments.asset_resolver)
        .replace("__PROJECT_SOURCE__", js_literal(fragments.project_source))
    )
    return "".join([
        _HEAD,
        _OVERLAYS,
        f"  <script>{script}</script>\n",
        f"  <script>{boot}</script>\n",
        "</body>\n</html>\n",
    ])


# ---------------------------------------------------------------------------
# Static markup
# ---------------------------------------------------------------------------

_HEAD = """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>Packaged Project</title>
  <style>
    body {
      background-color: black;
      color: white;
      font-family: sans-serif;
      overflow: hidden;
    }
    [hidden] {
      display: none !important;
    }
    #app, #loading, #error, #launch {
      position: absolute;
      top: 0;
      left: 0;
      width: 100%;
      height: 100%;
    }
    .screen {
      display: flex;
      flex-direction: column;
      align-items: center;
      justify-content: center;
      text-align: center;
      user-select: none;
      background-color: black;
    }
    #launch {
      background-color: rgba(0, 0, 0, 0.7);
      cursor: pointer;
    }
    .progress-bar-outer {
      border: 1px solid currentColor;
      height: 10px;
      width: 200px;
    }
    .progress-bar-inner {
      height: 100%;
      width: 0;
      background-color: currentColor;
    }
  </style>
</head>
<body>
"""

_OVERLAYS = """  <noscript>Enable JavaScript</noscript>

  <div id="app"></div>

  <div id="launch" class="screen" hidden title="Click to start" tabindex="0">
    <svg viewBox="0 0 16.63 17.5" width="80" height="80">
      <path fill="#4cbf56" stroke="#45993d" stroke-linecap="round" stroke-linejoin="round" d="M.75,2A6.44,6.44,0,0,1,8.44,2h0a6.44,6.44,0,0,0,7.69,0V12.4a6.44,6.44,0,0,1-7.69,0h0a6.44,6.44,0,0,0-7.69,0"/>
      <line stroke="#45993d" stroke-width="1.5" stroke-linecap="round" x1="0.75" y1="16.75" x2="0.75" y2="0.75"/>
    </svg>
  </div>

  <div id="loading" class="screen">
    <div class="progress-bar-outer"><div class="progress-bar-inner" id="loading-inner"></div></div>
  </div>

  <div id="error" class="screen" hidden>
    <h1>Error</h1>
    <p>See console for more information</p>
  </div>

"""

_ARCHIVE_ASSET_RESOLVER = """
      storage.addWebStore(
        [storage.AssetType.ImageVector, storage.AssetType.ImageBitmap, storage.AssetType.Sound],
        (asset) => new URL("./assets/" + asset.assetId + "." + asset.dataFormat, location).href
      );"""

_BOOT_TEMPLATE = """
    const appElement = document.getElementById('app');
    const launchScreen = document.getElementById('launch');
    const loadingScreen = document.getElementById('loading');
    const loadingInner = document.getElementById('loading-inner');
    const errorScreen = document.getElementById('error');

    const config = __CONFIG__;

    const setProgress = (progress) => {
      loadingInner.style.width = progress * 100 + '%';
    };

    const setup = () => {
      const scaffolding = new Scaffolding.Scaffolding();
      scaffolding.width = config.stageWidth;
      scaffolding.height = config.stageHeight;
      scaffolding.setup();
      scaffolding.appendTo(appElement);
      ScaffoldingAddons.run(scaffolding);

      const {storage, vm} = scaffolding;__ASSET_RESOLVER__
      storage.onprogress = (total, loaded) => {
        if (total > 0) {
          setProgress(__INITIAL_PROGRESS__ + (loaded / total) * (1 - __INITIAL_PROGRESS__));
        }
      };

      vm.setTurboMode(config.turboMode);
      vm.setInterpolation(config.interpolation);
      vm.setFramerate(config.frameRate);
      vm.renderer.setUseHighQualityRender(config.highQualityRendering);
      vm.setRuntimeOptions({
        fencing: config.fencingEnabled,
        miscLimits: config.resourceLimitsEnabled,
        maxClones: config.maxClones,
      });
      return scaffolding;
    };

    const getProjectData = async () => {
      const res = await fetch(__PROJECT_SOURCE__);
      if (!res.ok) {
        throw new Error('Project could not be fetched: ' + res.status);
      }
      return res.arrayBuffer();
    };

    const waitForLaunch = () => new Promise((resolve) => {
      const launch = () => {
        launchScreen.hidden = true;
        resolve();
      };
      launchScreen.addEventListener('click', launch, {once: true});
      launchScreen.addEventListener('keydown', (event) => {
        if (event.key === 'Enter' || event.key === ' ') {
          launch();
        }
      });
      launchScreen.hidden = false;
      launchScreen.focus();
    });

    const run = async () => {
      setProgress(__INITIAL_PROGRESS__);
      const scaffolding = setup();
      const projectData = await getProjectData();
      await scaffolding.loadProject(projectData);
      setProgress(1);
      loadingScreen.hidden = true;
      if (!config.autoplay) {
        await waitForLaunch();
      }
      scaffolding.start();
    };

    const handleError = (error) => {
      console.error(error);
      loadingScreen.hidden = true;
      launchScreen.hidden = true;
      errorScreen.hidden = false;
    };

    run().catch(handleError);
  """
