"""FastAPI app: a single form that turns a script into a downloaded audio file.

Run with ``convo-audio serve`` or
``uvicorn --factory convo_audio.web:create_app``.
"""

import asyncio
import logging
import threading
from contextlib import asynccontextmanager
from html import escape

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse, Response

from convo_audio.config import PCM_22050_MONO, Settings
from convo_audio.constants import DEFAULT_PAUSE_SECONDS, DEFAULT_SCRIPT, DEFAULT_TITLE
from convo_audio.errors import GenerationCancelled, SynthesisError, UpstreamError, ValidationError
from convo_audio.models import Voice
from convo_audio.producer import GenerationRequest, produce
from convo_audio.tts import ElevenLabsSynthesizer, Synthesizer

logger = logging.getLogger(__name__)

DISCONNECT_POLL_SECONDS = 0.5

_STYLE = """
:root{--bg:#0b0b0f;--card:#14161a;--muted:#94a3b8;--text:#e5e7eb;--accent:#3b82f6;--border:#263041;--input:#0f1115}
*{box-sizing:border-box}
body{margin:0;background:var(--bg);color:var(--text);font:16px/1.5 system-ui,sans-serif;display:flex;justify-content:center;padding:40px 16px}
.card{width:min(980px,100%);background:var(--card);border:1px solid var(--border);border-radius:18px;padding:28px}
h1{margin:0 0 18px;font-size:22px;text-align:center}
p.hint,.footer{color:var(--muted);text-align:center}
.msg{background:#b91c1c;color:#fff;padding:10px 12px;border-radius:10px;margin:0 0 12px;font-weight:600}
form{display:flex;flex-direction:column;gap:18px}
.grid{display:grid;grid-template-columns:repeat(auto-fit,minmax(220px,1fr));gap:14px}
label{display:flex;flex-direction:column;gap:8px;font-weight:600}
input,select,textarea{background:var(--input);color:var(--text);border:1px solid #334155;border-radius:10px;padding:11px 12px;font-size:15px}
textarea{min-height:260px;resize:vertical}
button{padding:14px 16px;font-size:16px;font-weight:700;color:#fff;background:var(--accent);border:none;border-radius:12px;cursor:pointer}
.overlay{position:fixed;inset:0;background:rgba(0,0,0,.65);display:none;align-items:center;justify-content:center}
.spinner{border:6px solid #333;border-top:6px solid var(--accent);border-radius:50%;width:60px;height:60px;animation:spin 1s linear infinite}
@keyframes spin{to{transform:rotate(360deg)}}
"""


def _options(voices: list[Voice], selected: str) -> str:
    return "".join(
        f'<option value="{escape(v.id)}"{" selected" if v.id == selected else ""}>{escape(v.name)}</option>'
        for v in voices
    )


def render_form(voices: list[Voice], msg: str = "", form: dict | None = None) -> str:
    """Render the generation form; every user-supplied value is escaped."""
    form = form or {}
    title = form.get("title", DEFAULT_TITLE)
    fmt = form.get("format", "wav")
    msg_html = f'<div class="msg">{escape(msg)}</div>' if msg else ""

    return f"""<!doctype html>
<html>
<head>
  <meta charset="utf-8">
  <title>Conversation &rarr; Audio</title>
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <style>{_STYLE}</style>
</head>
<body>
  <div class="overlay" id="overlay"><div class="spinner"></div></div>
  <section class="card">
    {msg_html}
    <h1>Conversation &rarr; Audio (2 speakers, multiple pauses)</h1>
    <p class="hint">Title becomes the filename. WAV = exact pauses, MP3 = best-effort.</p>
    <form method="post" action="/generate" onsubmit="document.getElementById('overlay').style.display='flex'">
      <label>Title (used as filename)
        <input name="title" value="{escape(title)}">
      </label>
      <div class="grid">
        <label>Speaker 1 voice
          <select name="voice1">{_options(voices, form.get("voice1", ""))}</select>
        </label>
        <label>Speaker 2 voice
          <select name="voice2">{_options(voices, form.get("voice2", ""))}</select>
        </label>
        <label>Default pause (s)
          <input name="pauseDefault" type="number" step=".1" min="0" value="{escape(str(form.get("pauseDefault", DEFAULT_PAUSE_SECONDS)))}">
        </label>
        <label>Output format
          <select name="format">
            <option value="wav"{" selected" if fmt != "mp3" else ""}>WAV (gapless)</option>
            <option value="mp3"{" selected" if fmt == "mp3" else ""}>MP3 (approximate pauses)</option>
          </select>
        </label>
        <label>Filename (optional override)
          <input name="filename" placeholder="Leave blank to use Title" value="{escape(form.get("filename", ""))}">
        </label>
      </div>
      <label>Script
        <textarea name="script" rows="16">{escape(form.get("script", DEFAULT_SCRIPT))}</textarea>
      </label>
      <button type="submit">Generate</button>
      <div class="footer">Audio is generated in memory and downloaded directly.</div>
    </form>
  </section>
</body>
</html>"""


def _voices_or_empty(synthesizer: Synthesizer) -> list[Voice]:
    """Voice list for the form; an upstream failure degrades to no choices."""
    try:
        return synthesizer.list_voices()
    except UpstreamError as e:
        logger.warning("Voice list unavailable: %s", e)
        return []


def create_app(settings: Settings | None = None, synthesizer: Synthesizer | None = None) -> FastAPI:
    """Build the app. Settings are loaded here, so a missing API key fails at startup."""
    if settings is None and synthesizer is None:
        settings = Settings.from_env()
    owned = None
    if synthesizer is None:
        owned = synthesizer = ElevenLabsSynthesizer(settings)
    audio_format = settings.audio if settings else PCM_22050_MONO

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if owned is not None:
            owned.close()

    app = FastAPI(title="Conversation Audio", lifespan=lifespan)
    app.state.synthesizer = synthesizer

    @app.get("/", response_class=HTMLResponse)
    async def index():
        try:
            voices = await run_in_threadpool(synthesizer.list_voices)
        except UpstreamError as e:
            logger.warning("Voice list unavailable: %s", e)
            return HTMLResponse(render_form([], msg=f"Failed to load voices: {e}"), status_code=500)
        return HTMLResponse(render_form(voices))

    @app.post("/generate")
    async def generate(request: Request):
        form = {k: v for k, v in (await request.form()).items() if isinstance(v, str)}
        gen_request = GenerationRequest.from_form(form)

        cancelled = threading.Event()
        task = asyncio.ensure_future(
            run_in_threadpool(produce, gen_request, synthesizer, audio_format, cancelled)
        )
        try:
            while not task.done():
                await asyncio.wait({task}, timeout=DISCONNECT_POLL_SECONDS)
                if not task.done() and await request.is_disconnected():
                    cancelled.set()
                    break
            artifact = await task
        except GenerationCancelled as e:
            logger.info("Client disconnected: %s", e)
            return Response(status_code=499)
        except ValidationError as e:
            voices = await run_in_threadpool(_voices_or_empty, synthesizer)
            return HTMLResponse(render_form(voices, msg=str(e), form=form), status_code=400)
        except SynthesisError as e:
            logger.error("Synthesis failed for %r: %s", gen_request.title or "untitled", e)
            voices = await run_in_threadpool(_voices_or_empty, synthesizer)
            return HTMLResponse(render_form(voices, msg=f"Synthesis failed: {e}", form=form), status_code=502)

        headers = {"Content-Disposition": f'attachment; filename="{artifact.filename}"'}
        if artifact.warnings:
            headers["X-Audio-Warning"] = " ".join(artifact.warnings)
        return Response(content=artifact.data, media_type=artifact.content_type, headers=headers)

    return app
