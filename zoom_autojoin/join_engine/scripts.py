"""
In-page JavaScript used by the auto-join engine.

Evaluated through Playwright (`element.evaluate` / `page.evaluate`), so each
snippet is a function expression taking at most one argument.
"""

# =============================================================================
# CLICKING
# =============================================================================

# Native el.click() like the page's own handlers expect. Detached nodes are
# reported back instead of clicked so the target is retried on the next tick.
CLICK_IF_CONNECTED_JS = """
(el) => {
    if (!el || !el.isConnected) {
        return false;
    }
    el.click();
    return true;
}
"""


# =============================================================================
# DOM MUTATION OBSERVER
# =============================================================================

# Installs one observer per binding. Notifications are coalesced over
# `throttleMs` so a re-render burst produces a single extra tick.
INSTALL_MUTATION_OBSERVER_JS = """
({ bindingName, throttleMs }) => {
    const key = '__autojoinObserver_' + bindingName;
    if (window[key]) {
        return false;
    }
    const root = document.body || document.documentElement;
    if (!root) {
        return false;
    }

    let pending = false;
    const observer = new MutationObserver(() => {
        if (pending) return;
        pending = true;
        setTimeout(() => {
            pending = false;
            const notify = window[bindingName];
            if (typeof notify === 'function') {
                Promise.resolve(notify()).catch(() => {});
            }
        }, throttleMs);
    });

    observer.observe(root, { childList: true, subtree: true });
    window[key] = observer;
    return true;
}
"""

DISCONNECT_MUTATION_OBSERVER_JS = """
(bindingName) => {
    const key = '__autojoinObserver_' + bindingName;
    const observer = window[key];
    if (observer) {
        observer.disconnect();
        delete window[key];
        return true;
    }
    return false;
}
"""


# =============================================================================
# KEYBOARD SHORTCUT
# =============================================================================

# Synthetic keydown + keyup on the document. Only effective when the browser
# honors page-dispatched shortcuts (e.g. Edge with tab muting bound to Ctrl+M).
DISPATCH_SHORTCUT_JS = """
(shortcut) => {
    const init = {
        key: shortcut.key,
        code: shortcut.code,
        keyCode: shortcut.keyCode,
        which: shortcut.keyCode,
        ctrlKey: shortcut.ctrlKey,
        metaKey: shortcut.metaKey,
        altKey: shortcut.altKey,
        shiftKey: shortcut.shiftKey,
        bubbles: true,
        cancelable: true
    };
    document.dispatchEvent(new KeyboardEvent('keydown', init));
    document.dispatchEvent(new KeyboardEvent('keyup', init));
    return true;
}
"""
