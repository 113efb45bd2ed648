"""
Single-page web UI served by the API server.

Plain HTML + vanilla JS, no build step. Settings are kept in localStorage;
text and results are never stored.
"""

INDEX_HTML = r"""<!doctype html>
<html lang="fr">
  <head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>Proofdesk</title>
    <style>
      :root {
        --bg: #fafafa;
        --fg: #27272a;
        --muted: #71717a;
        --card: #ffffff;
        --border: #e4e4e7;
        --accent: #2563eb;
        --err-bg: #fef2f2;
        --err-fg: #b91c1c;
        --warn-bg: #fffbeb;
        --warn-fg: #b45309;
        --del-bg: #fef2f2;
        --del-fg: #b91c1c;
        --ins-bg: #f0fdf4;
        --ins-fg: #15803d;
      }
      @media (prefers-color-scheme: dark) {
        :root {
          --bg: #18181b;
          --fg: #e4e4e7;
          --muted: #a1a1aa;
          --card: #27272a;
          --border: #3f3f46;
          --err-bg: rgba(127, 29, 29, 0.25);
          --err-fg: #fca5a5;
          --warn-bg: rgba(120, 53, 15, 0.25);
          --warn-fg: #fcd34d;
          --del-bg: rgba(127, 29, 29, 0.25);
          --del-fg: #fca5a5;
          --ins-bg: rgba(20, 83, 45, 0.3);
          --ins-fg: #86efac;
        }
      }
      * { box-sizing: border-box; }
      body {
        margin: 0;
        background: var(--bg);
        color: var(--fg);
        font-family: ui-sans-serif, -apple-system, system-ui, Segoe UI, Roboto, Helvetica, Arial, sans-serif;
        font-size: 14px;
        line-height: 1.5;
      }
      .layout { display: flex; height: 100vh; }
      main { flex: 1; min-width: 0; overflow-y: auto; padding: 24px; display: flex; flex-direction: column; gap: 16px; }
      aside { width: 260px; flex-shrink: 0; border-left: 1px solid var(--border); padding: 20px; overflow-y: auto;
              display: flex; flex-direction: column; gap: 18px; background: var(--card); }
      h1 { margin: 0; font-size: 18px; font-weight: 600; }
      .panes { display: grid; grid-template-columns: 1fr; gap: 16px; }
      @media (min-width: 1280px) { .panes { grid-template-columns: 1fr 1fr; } }
      .pane { display: flex; flex-direction: column; gap: 6px; }
      .pane-head { display: flex; align-items: center; justify-content: space-between; }
      label.title, legend { font-size: 12px; font-weight: 600; color: var(--muted); text-transform: uppercase; letter-spacing: 0.03em; }
      textarea, select, .output {
        width: 100%;
        border: 1px solid var(--border);
        border-radius: 6px;
        background: var(--card);
        color: var(--fg);
        font: inherit;
        padding: 10px 12px;
      }
      textarea#input { min-height: 320px; resize: vertical; }
      .output { min-height: 320px; white-space: pre-wrap; word-break: break-word; }
      .output.empty { color: var(--muted); }
      .counter { font-size: 12px; color: var(--muted); }
      .counter.over { color: var(--warn-fg); }
      .subject { display: flex; align-items: center; gap: 8px; border: 1px solid var(--border); border-radius: 6px;
                 padding: 8px 12px; background: var(--card); }
      .subject span.text { flex: 1; font-weight: 600; }
      button { font: inherit; cursor: pointer; }
      button.primary { background: var(--accent); color: #fff; border: 0; border-radius: 6px; padding: 8px 12px; font-weight: 600; }
      button.primary:disabled { opacity: 0.5; cursor: not-allowed; }
      button.small { background: transparent; border: 1px solid var(--border); color: var(--muted); border-radius: 6px;
                     padding: 2px 8px; font-size: 12px; }
      .notice { border-radius: 6px; padding: 8px 12px; font-size: 13px; }
      .notice.error { background: var(--err-bg); color: var(--err-fg); }
      .notice.warning { background: var(--warn-bg); color: var(--warn-fg); }
      .callout { display: flex; gap: 12px; align-items: flex-start; border: 1px solid var(--accent); border-radius: 8px; padding: 10px 14px; }
      .callout .body { flex: 1; min-width: 0; }
      .callout .preview { white-space: pre-line; overflow: hidden; max-height: 3em; }
      .tabs { display: flex; align-items: center; gap: 16px; border-bottom: 1px solid var(--border); }
      .tab { background: none; border: 0; border-bottom: 2px solid transparent; padding: 0 0 8px; color: var(--muted); font-weight: 500; }
      .tab.active { border-bottom-color: var(--accent); color: var(--accent); }
      .tabs .status { margin-left: auto; font-size: 12px; color: var(--muted); }
      .items { display: flex; flex-direction: column; gap: 12px; padding-top: 8px; }
      .item { border: 1px solid var(--border); border-radius: 6px; padding: 12px; background: var(--card); }
      .item h4 { margin: 0 0 4px; font-size: 14px; }
      .item p { margin: 0; color: var(--muted); }
      .item .head { display: flex; gap: 8px; align-items: center; margin-bottom: 8px; }
      .badge { border-radius: 999px; padding: 1px 8px; font-size: 12px; font-weight: 500; background: var(--border); }
      .important { color: var(--warn-fg); font-size: 12px; font-weight: 500; }
      .rule { color: var(--muted); font-size: 12px; font-style: italic; }
      .diff { display: flex; flex-direction: column; gap: 4px; margin-bottom: 8px; }
      .diff div { display: flex; gap: 8px; align-items: flex-start; }
      .diff .tag { font-size: 12px; color: var(--muted); width: 36px; flex-shrink: 0; }
      .del { background: var(--del-bg); color: var(--del-fg); border-radius: 4px; padding: 1px 6px; text-decoration: line-through; }
      .ins { background: var(--ins-bg); color: var(--ins-fg); border-radius: 4px; padding: 1px 6px; }
      .empty-list { color: var(--muted); text-align: center; padding: 16px 0; }
      fieldset { border: 0; margin: 0; padding: 0; display: flex; flex-direction: column; gap: 4px; }
      .check { display: flex; gap: 8px; align-items: center; }
      .scale { display: flex; justify-content: space-between; font-size: 11px; color: var(--muted); }
      input[type=range] { width: 100%; }
      .hidden { display: none !important; }
    </style>
  </head>
  <body>
    <div class="layout">
      <main>
        <h1>Proofread</h1>

        <div id="callout" class="callout hidden">
          <div class="body">
            <div class="counter">Presse-papier</div>
            <div id="callout-text" class="preview"></div>
          </div>
          <button id="callout-correct" class="primary">Corriger</button>
          <button id="callout-dismiss" class="small" aria-label="Fermer">&times;</button>
        </div>

        <div class="panes">
          <div class="pane">
            <div class="pane-head">
              <label class="title" for="input">Texte à relire / traduire</label>
              <span id="counter" class="counter"></span>
            </div>
            <textarea id="input" placeholder="Collez votre texte ici…"></textarea>
          </div>
          <div class="pane">
            <div class="pane-head">
              <label class="title">Résultat (Markdown)</label>
              <button id="copy-body" class="small hidden">Copier</button>
            </div>
            <div id="subject" class="subject hidden">
              <span class="counter">Objet</span>
              <span id="subject-text" class="text"></span>
              <button id="copy-subject" class="small">Copier</button>
            </div>
            <div id="output" class="output empty">Le résultat apparaîtra ici.</div>
          </div>
        </div>

        <div id="error" class="notice error hidden"></div>
        <div id="warning" class="notice warning hidden"></div>

        <div>
          <div class="tabs">
            <button class="tab active" data-tab="changes" id="tab-changes">Changements</button>
            <button class="tab" data-tab="learning" id="tab-learning">Apprentissage</button>
            <span id="status" class="status"></span>
          </div>
          <div id="panel-changes" class="items"></div>
          <div id="panel-learning" class="items hidden"></div>
        </div>
      </main>

      <aside>
        <fieldset>
          <legend>Mode</legend>
          <label class="check"><input type="radio" name="mode" value="proofread" /> Proofread</label>
          <label class="check"><input type="radio" name="mode" value="translate_proofread" /> Translate + Proofread</label>
        </fieldset>

        <div>
          <label class="title" for="tone">Ton</label>
          <select id="tone"></select>
        </div>

        <div>
          <label class="title" for="rewrite">Réécriture — <span id="rewrite-label"></span></label>
          <input id="rewrite" type="range" min="0" max="3" step="1" />
          <div id="rewrite-scale" class="scale"></div>
        </div>

        <div id="lang-box">
          <label class="title" for="lang">Langue cible</label>
          <select id="lang"></select>
        </div>

        <label class="check"><input id="email" type="checkbox" /> Email (formules d'usage)</label>
        <label class="check"><input id="autocopy" type="checkbox" /> Auto-copie</label>

        <div>
          <label class="title" for="instructions">Instructions (optionnel)</label>
          <textarea id="instructions" rows="3" placeholder="Ex: Vouvoyer le destinataire, éviter le jargon..."></textarea>
        </div>

        <button id="submit" class="primary">Corriger</button>
      </aside>
    </div>

    <script>
      const STORAGE_KEY = "proofdesk.settings";
      const SUBJECT_RE = /^Subject:\s*(.+)\n/i;
      const $ = (id) => document.getElementById(id);

      let options = {
        tones: {}, langs: {}, rewriteSteps: ["none", "light", "medium", "strong"],
        rewriteLabels: {}, inputMaxChars: 12000,
      };
      let settings = {
        mode: "proofread", tonePreset: "neutral_pro", rewriteStrength: "light", targetLang: "en",
        customInstructions: "", emailMode: false, autoCopy: false,
      };
      let state = { loading: false, explaining: false, output: "", latencyMs: null, changes: [], learning: [] };
      let activeTab = "changes";
      let lastClipboard = null;
      let submission = 0;

      function loadSettings() {
        try {
          const saved = JSON.parse(localStorage.getItem(STORAGE_KEY) || "{}");
          settings = Object.assign(settings, saved);
        } catch (e) {
          localStorage.removeItem(STORAGE_KEY);
        }
      }

      function saveSettings() {
        localStorage.setItem(STORAGE_KEY, JSON.stringify(settings));
      }

      function el(tag, cls, text) {
        const node = document.createElement(tag);
        if (cls) node.className = cls;
        if (text !== undefined && text !== null) node.textContent = text;
        return node;
      }

      function show(node, visible) {
        node.classList.toggle("hidden", !visible);
      }

      function parseSubject(markdown) {
        const match = markdown.match(SUBJECT_RE);
        if (!match) return { subject: null, body: markdown };
        return { subject: match[1].trim(), body: markdown.slice(match[0].length).replace(/^\n/, "") };
      }

      async function copyText(text, button) {
        try {
          await navigator.clipboard.writeText(text);
          lastClipboard = text;
          const label = button.textContent;
          button.textContent = "Copié !";
          setTimeout(() => { button.textContent = label; }, 2000);
        } catch (e) {
          showWarning("Copie impossible : accès au presse-papier refusé");
        }
      }

      // ── Controls ────────────────────────────────────────────────

      function fillSelect(select, labels, value) {
        select.innerHTML = "";
        for (const [key, label] of Object.entries(labels)) {
          const opt = el("option", null, label);
          opt.value = key;
          select.appendChild(opt);
        }
        select.value = value;
      }

      function renderControls() {
        document.querySelectorAll("input[name=mode]").forEach((radio) => {
          radio.checked = radio.value === settings.mode;
        });
        fillSelect($("tone"), options.tones, settings.tonePreset);
        fillSelect($("lang"), options.langs, settings.targetLang);
        const steps = options.rewriteSteps;
        $("rewrite").max = String(steps.length - 1);
        $("rewrite").value = String(Math.max(0, steps.indexOf(settings.rewriteStrength)));
        $("rewrite-label").textContent = options.rewriteLabels[settings.rewriteStrength] || settings.rewriteStrength;
        const scale = $("rewrite-scale");
        scale.innerHTML = "";
        steps.forEach((s) => scale.appendChild(el("span", null, options.rewriteLabels[s] || s)));
        show($("lang-box"), settings.mode === "translate_proofread");
        $("email").checked = !!settings.emailMode;
        $("autocopy").checked = !!settings.autoCopy;
        $("instructions").value = settings.customInstructions || "";
      }

      function bindControls() {
        document.querySelectorAll("input[name=mode]").forEach((radio) => {
          radio.addEventListener("change", () => { settings.mode = radio.value; saveSettings(); renderControls(); });
        });
        $("tone").addEventListener("change", (e) => { settings.tonePreset = e.target.value; saveSettings(); });
        $("lang").addEventListener("change", (e) => { settings.targetLang = e.target.value; saveSettings(); });
        $("rewrite").addEventListener("input", (e) => {
          settings.rewriteStrength = options.rewriteSteps[Number(e.target.value)];
          saveSettings();
          renderControls();
        });
        $("email").addEventListener("change", (e) => { settings.emailMode = e.target.checked; saveSettings(); });
        $("autocopy").addEventListener("change", (e) => { settings.autoCopy = e.target.checked; saveSettings(); });
        $("instructions").addEventListener("input", (e) => { settings.customInstructions = e.target.value; saveSettings(); });
        $("input").addEventListener("input", renderCounter);
        $("input").addEventListener("keydown", (e) => {
          if (e.key === "Enter" && (e.ctrlKey || e.metaKey)) { e.preventDefault(); handleSubmit(); }
        });
        $("submit").addEventListener("click", handleSubmit);
        document.querySelectorAll(".tab").forEach((tab) => {
          tab.addEventListener("click", () => { activeTab = tab.dataset.tab; renderPanels(); });
        });
        $("copy-body").addEventListener("click", () => copyText(parseSubject(state.output).body, $("copy-body")));
        $("copy-subject").addEventListener("click", () => {
          const { subject } = parseSubject(state.output);
          if (subject) copyText(subject, $("copy-subject"));
        });
        $("callout-dismiss").addEventListener("click", () => show($("callout"), false));
        $("callout-correct").addEventListener("click", () => {
          $("input").value = $("callout-text").textContent;
          show($("callout"), false);
          renderCounter();
          handleSubmit();
        });
        window.addEventListener("focus", checkClipboard);
      }

      function renderCounter() {
        const len = $("input").value.length;
        const max = options.inputMaxChars;
        const over = len > max;
        $("counter").textContent = `${len.toLocaleString()} / ${max.toLocaleString()} chars` +
          (over ? " — texte long, la réponse pourrait être plus lente" : "");
        $("counter").classList.toggle("over", over);
      }

      // ── Output and panels ───────────────────────────────────────

      function renderOutput() {
        const output = $("output");
        const { subject, body } = parseSubject(state.output);
        output.classList.toggle("empty", !state.output);
        if (state.loading) {
          output.textContent = "Correction en cours...";
          output.classList.add("empty");
        } else {
          output.textContent = state.output ? body : "Le résultat apparaîtra ici.";
        }
        show($("subject"), !state.loading && !!subject);
        $("subject-text").textContent = subject || "";
        show($("copy-body"), !state.loading && !!state.output);
        $("submit").disabled = state.loading;
        $("submit").textContent = state.loading ? "Correction en cours..." : "Corriger";
      }

      function renderChanges() {
        const panel = $("panel-changes");
        panel.innerHTML = "";
        if (!state.changes.length) {
          panel.appendChild(el("div", "empty-list", "Aucun changement à afficher"));
          return;
        }
        for (const item of state.changes) {
          const card = el("div", "item");
          const head = el("div", "head");
          head.appendChild(el("span", "badge", item.category));
          if (item.severity === "important") head.appendChild(el("span", "important", "important"));
          if (item.rule) head.appendChild(el("span", "rule", item.rule));
          card.appendChild(head);
          const diff = el("div", "diff");
          const before = el("div");
          before.appendChild(el("span", "tag", "avant"));
          before.appendChild(el("span", "del", item.before));
          const after = el("div");
          after.appendChild(el("span", "tag", "après"));
          after.appendChild(el("span", "ins", item.after));
          diff.appendChild(before);
          diff.appendChild(after);
          card.appendChild(diff);
          card.appendChild(el("p", null, item.explanation));
          panel.appendChild(card);
        }
      }

      function renderLearning() {
        const panel = $("panel-learning");
        panel.innerHTML = "";
        if (!state.learning.length) {
          panel.appendChild(el("div", "empty-list", "Aucun point d'apprentissage"));
          return;
        }
        for (const item of state.learning) {
          const card = el("div", "item");
          card.appendChild(el("h4", null, item.title));
          card.appendChild(el("p", null, item.explanation));
          if (item.exampleBefore || item.exampleAfter) {
            const diff = el("div", "diff");
            diff.style.marginTop = "8px";
            if (item.exampleBefore) {
              const row = el("div");
              row.appendChild(el("span", "tag", "avant"));
              row.appendChild(el("span", "del", item.exampleBefore));
              diff.appendChild(row);
            }
            if (item.exampleAfter) {
              const row = el("div");
              row.appendChild(el("span", "tag", "après"));
              row.appendChild(el("span", "ins", item.exampleAfter));
              diff.appendChild(row);
            }
            card.appendChild(diff);
          }
          panel.appendChild(card);
        }
      }

      function renderPanels() {
        $("tab-changes").textContent = "Changements" + (state.changes.length ? ` (${state.changes.length})` : "");
        $("tab-learning").textContent = "Apprentissage" + (state.learning.length ? ` (${state.learning.length})` : "");
        document.querySelectorAll(".tab").forEach((tab) => tab.classList.toggle("active", tab.dataset.tab === activeTab));
        show($("panel-changes"), activeTab === "changes");
        show($("panel-learning"), activeTab === "learning");
        if (state.explaining) {
          $("status").textContent = "Analyse en cours...";
        } else if (state.latencyMs !== null) {
          $("status").textContent = `${(state.latencyMs / 1000).toFixed(1)}s`;
        } else {
          $("status").textContent = "";
        }
        renderChanges();
        renderLearning();
      }

      function showError(message) {
        $("error").textContent = message || "";
        show($("error"), !!message);
      }

      function showWarning(message) {
        $("warning").textContent = message || "";
        show($("warning"), !!message);
      }

      // ── Network ─────────────────────────────────────────────────

      async function postJson(url, payload) {
        const res = await fetch(url, {
          method: "POST",
          headers: { "Content-Type": "application/json" },
          body: JSON.stringify(payload),
        });
        if (!res.ok) {
          const data = await res.json().catch(() => ({ error: `HTTP ${res.status}` }));
          throw new Error(data.error || `HTTP ${res.status}`);
        }
        return res.json();
      }

      function handleSubmit() {
        const inputText = $("input").value;
        if (!inputText.trim() || state.loading) return;
        const id = ++submission;
        const current = () => id === submission;

        state = { loading: true, explaining: true, output: "", latencyMs: null, changes: [], learning: [] };
        showError(null);
        showWarning(null);
        renderOutput();
        renderPanels();

        const targetLang = settings.mode === "translate_proofread" ? settings.targetLang : undefined;

        // Both calls run in parallel; each one updates its own part of the page
        postJson("/api/process", {
          mode: settings.mode,
          inputText,
          tonePreset: settings.tonePreset,
          customInstructions: settings.customInstructions || undefined,
          rewriteStrength: settings.rewriteStrength,
          targetLang,
          emailMode: settings.emailMode || undefined,
          outputFormat: "markdown",
        })
          .then((data) => {
            if (!current()) return;
            state.output = data.outputMarkdown || "";
            state.latencyMs = data.meta ? data.meta.latencyMs : null;
            if (data.parseWarning) showWarning(data.parseWarning);
            if (settings.autoCopy && state.output) {
              copyText(parseSubject(state.output).body, $("copy-body"));
            }
          })
          .catch((err) => { if (current()) showError(err.message || "Erreur inconnue"); })
          .finally(() => {
            if (!current()) return;
            state.loading = false;
            renderOutput();
            renderPanels();
          });

        postJson("/api/explain", {
          inputText,
          mode: settings.mode,
          rewriteStrength: settings.rewriteStrength,
          targetLang,
        })
          .then((data) => {
            if (!current()) return;
            state.changes = data.changes || [];
            state.learning = data.learning || [];
            if (data.parseWarning) showWarning(data.parseWarning);
          })
          .catch((err) => {
            if (current()) showWarning(`Explications indisponibles : ${err.message || "erreur"}`);
          })
          .finally(() => {
            if (!current()) return;
            state.explaining = false;
            renderPanels();
          });
      }

      async function checkClipboard() {
        if (!navigator.clipboard || !navigator.clipboard.readText) return;
        let text;
        try {
          text = await navigator.clipboard.readText();
        } catch (e) {
          return;
        }
        if (!text || !text.trim() || text === lastClipboard || text === $("input").value) return;
        if (text === state.output || text === parseSubject(state.output).body) return;
        lastClipboard = text;
        $("callout-text").textContent = text;
        show($("callout"), true);
      }

      async function init() {
        loadSettings();
        try {
          const res = await fetch("/api/options");
          if (res.ok) options = Object.assign(options, await res.json());
        } catch (e) {
          showError("Serveur injoignable");
        }
        if (!options.rewriteSteps.includes(settings.rewriteStrength)) settings.rewriteStrength = "light";
        renderControls();
        bindControls();
        renderCounter();
        renderOutput();
        renderPanels();
      }

      init();
    </script>
  </body>
</html>
"""
