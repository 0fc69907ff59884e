"""
Document mutator - fill fields and paint assets inside the page.

DOM handles cannot leave the browser, so mutation runs as an injected script.
Image assets are measured in the page first and sliced by plans computed
here; the script only draws what the payload describes.
"""

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

from playwright.async_api import Page

from printhelper.shared.logging import get_logger
from printhelper.shared.time import epoch_ms

from .geometry import A4_GEOMETRY, PageGeometry, plan_image
from .schemas import TRUTHY_TOKENS, ResolvedAsset

logger = get_logger(__name__)


MEASURE_SCRIPT = """async (entries) => {
    const sizes = {};
    for (const [name, data] of entries) {
        const img = new Image();
        img.src = data;
        try {
            await img.decode();
        } catch (err) {
            continue;
        }
        if (img.naturalWidth > 0 && img.naturalHeight > 0) {
            sizes[name] = [img.naturalWidth, img.naturalHeight];
        }
    }
    return sizes;
}"""


MUTATE_SCRIPT = """async ({ fields, assets, plans, truthy }) => {
    const findControl = (name) =>
        document.querySelector(`[name="${CSS.escape(name)}"]`) ||
        document.getElementById(name);

    const isTruthy = (value) =>
        value === true ||
        (typeof value === 'string' && truthy.includes(value.toLowerCase()));

    const loadImage = async (data) => {
        if (!data || !data.startsWith('data:image')) return null;
        const img = new Image();
        img.src = data;
        try {
            await img.decode();
        } catch (err) {
            return null;
        }
        return img.naturalWidth > 0 && img.naturalHeight > 0 ? img : null;
    };

    // Bands come precomputed; each canvas is filled edge to edge
    const sliceImage = (img, plan) => plan.slices.map(({ top, height }) => {
        const canvas = document.createElement('canvas');
        canvas.width = Math.max(1, Math.round(plan.width));
        canvas.height = Math.max(1, Math.round(height));
        canvas.style.display = 'block';
        canvas.getContext('2d').drawImage(
            img,
            0, top / plan.scale, img.naturalWidth, height / plan.scale,
            0, 0, canvas.width, canvas.height
        );
        return canvas;
    });

    const label = (text) => {
        const div = document.createElement('div');
        div.className = 'printhelper-file-label';
        div.textContent = text;
        return div;
    };

    // 1. Field fill
    for (const [name, value] of Object.entries(fields)) {
        const el = findControl(name);
        if (!el) continue;
        try {
            if (el.tagName === 'SELECT') {
                el.innerHTML = '';
                const option = document.createElement('option');
                option.textContent = value ?? '';
                option.value = value ?? '';
                option.selected = true;
                el.appendChild(option);
            } else if (el.type === 'checkbox' || el.type === 'radio') {
                el.checked = isTruthy(value);
            } else if (el.type === 'file') {
                continue;
            } else if ('value' in el) {
                el.value = value ?? '';
                el.setAttribute('value', value ?? '');
            }
        } catch (err) {
            console.warn(`Field fill failed for ${name}: ${err}`);
        }
    }

    // 2. File inputs -> sliced images or labels
    for (const input of document.querySelectorAll('input[type="file"]')) {
        input.style.display = 'none';
        const name = input.name || input.id;
        if (!name || !(name in fields)) continue;
        try {
            const data = assets[name];
            if (!data) {
                input.after(label(`${name}: file not available`));
                continue;
            }
            const plan = plans[name];
            const img = plan ? await loadImage(data) : null;
            if (!img) {
                input.after(label(`${name}: attached file`));
                continue;
            }
            input.after(...sliceImage(img, plan));
        } catch (err) {
            console.warn(`File render failed for ${name}: ${err}`);
        }
    }

    // 3. Signature canvases
    for (const canvas of document.querySelectorAll('canvas[name]')) {
        const name = canvas.getAttribute('name');
        try {
            const plan = plans[name];
            const img = plan ? await loadImage(assets[name]) : null;
            if (!img) continue;
            const slices = sliceImage(img, plan);
            if (slices.length === 1) {
                const ctx = canvas.getContext('2d');
                ctx.clearRect(0, 0, canvas.width, canvas.height);
                ctx.drawImage(img, 0, 0, canvas.width, canvas.height);
            } else {
                canvas.replaceWith(...slices);
            }
        } catch (err) {
            console.warn(`Signature render failed for ${name}: ${err}`);
        }
    }
}"""


def build_payload(
    fields: Mapping[str, Any],
    assets: Mapping[str, ResolvedAsset],
    geometry: PageGeometry = A4_GEOMETRY,
    sizes: Mapping[str, Sequence[float]] | None = None,
) -> dict[str, Any]:
    """
    Serializable instruction payload for MUTATE_SCRIPT.

    sizes maps an asset name to the natural (width, height) of its decoded
    image; each one gets a slice plan. Assets without a size are not drawn.
    """
    return {
        "fields": {
            name: (value if isinstance(value, bool) else ("" if value is None else str(value)))
            for name, value in fields.items()
        },
        "assets": {name: asset.data for name, asset in assets.items()},
        "plans": {
            name: plan_image(width, height, geometry).to_payload()
            for name, (width, height) in (sizes or {}).items()
            if width > 0 and height > 0
        },
        "truthy": sorted(TRUTHY_TOKENS),
    }


class DocumentMutator:
    """Ship field values, resolved assets and slice plans into the page."""

    def __init__(self, geometry: PageGeometry = A4_GEOMETRY) -> None:
        self.geometry = geometry

    async def apply(
        self,
        page: Page,
        fields: Mapping[str, Any],
        assets: Mapping[str, ResolvedAsset],
    ) -> None:
        sizes = await self.measure(page, assets)
        payload = build_payload(fields, assets, self.geometry, sizes)
        missing = [name for name, asset in assets.items() if asset.data is None]
        if missing:
            logger.info(f"Rendering placeholders for unresolved assets: {', '.join(sorted(missing))}")
        logger.debug(
            f"Mutating document: {len(payload['fields'])} field(s), {len(assets)} asset(s), "
            f"{len(payload['plans'])} image(s)"
        )
        await page.evaluate(MUTATE_SCRIPT, payload)

    async def measure(self, page: Page, assets: Mapping[str, ResolvedAsset]) -> dict[str, list[float]]:
        """Natural sizes of the image assets that decode in the page."""
        entries = [[name, asset.data] for name, asset in assets.items() if asset.is_image]
        if not entries:
            return {}
        return await page.evaluate(MEASURE_SCRIPT, entries) or {}

    async def dump_markup(self, page: Page, directory: Path) -> Path:
        """Write the mutated document to disk for inspection."""
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / f"document-{epoch_ms()}.html"
        path.write_text(await page.content(), encoding="utf-8")
        logger.info(f"Mutated markup written to {path}")
        return path
