import sys

from PyQt5.QtCore import QRegExp, Qt
from PyQt5.QtGui import QColor, QFont, QPainter, QSyntaxHighlighter, QTextCharFormat
from PyQt5.QtWidgets import (
    QAction, QApplication, QFileDialog, QHBoxLayout, QMainWindow, QMessageBox, QPlainTextEdit,
    QSplitter, QStatusBar, QTabWidget, QWidget,
)

from compiler import compile_source
from lexical import Token, TokenKind, format_lexical_error, format_token_table, tokenize

BACKGROUND = "#2d2a2e"
PANE_STYLE = f"background-color: {BACKGROUND}; color: #ffffff;"
TAB_STYLE = f"""
    QTabWidget::pane {{ background: {BACKGROUND}; }}
    QTabBar::tab {{ background: {BACKGROUND}; color: white; padding: 5px; }}
    QTabBar::tab:selected {{ background: #727072; }}
"""
FILE_FILTER = "Source files (*.txt *.prg);;All files (*)"


# token group -> (foreground, bold, wavy underline)
GROUP_STYLES = {
    "identifier": ("#FCFCFA", False, False),
    "reserved": ("#FF6188", True, False),
    "number": ("#AB9DF2", False, False),
    "string": ("#A9DC76", False, False),
    "arithmetic": ("#FF6188", False, False),
    "assignment": ("#FF6188", False, False),
    "relational": ("#FFD866", False, False),
    "logical": ("#FFD866", True, False),
    "delimiter": ("#FD9353", False, False),
    "unknown": ("#A9DC76", True, True),
}
COMMENT_STYLE = ("#727072", False, False)


def char_format(color, bold=False, underline=False) -> QTextCharFormat:
    char_fmt = QTextCharFormat()
    char_fmt.setForeground(QColor(color))
    if bold:
        char_fmt.setFontWeight(QFont.Bold)
    if underline:
        char_fmt.setUnderlineStyle(QTextCharFormat.WaveUnderline)
        char_fmt.setUnderlineColor(QColor(color))
    return char_fmt


def source_text(token: Token) -> str:
    """Text of ``token`` as it appears in the editor."""
    if token.kind is TokenKind.LITERAL:
        return f'"{token.value}"'
    if token.kind is TokenKind.CHAR_CONST:
        return f"'{token.value}'"
    return str(token)


class LineNumberGutter(QWidget):
    """Strip left of an editor showing the number of each visible line."""

    MARGIN = 6

    def __init__(self, editor):
        super().__init__()
        self.editor = editor
        self.setStyleSheet(f"{PANE_STYLE} font-weight: bold;")
        self.setFont(editor.font())
        editor.blockCountChanged.connect(self.fit_to_line_count)
        editor.updateRequest.connect(self.follow_editor)
        self.fit_to_line_count(editor.blockCount())

    def fit_to_line_count(self, line_count):
        digits = len(str(max(1, line_count)))
        self.setFixedWidth(2 * self.MARGIN + self.fontMetrics().horizontalAdvance("9") * digits)

    def follow_editor(self, rect, dy):
        if dy:
            self.scroll(0, dy)
        else:
            self.update(0, rect.y(), self.width(), rect.height())

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.fillRect(event.rect(), QColor(BACKGROUND))
        painter.setPen(Qt.white)
        line_height = self.fontMetrics().height()
        text_width = self.width() - self.MARGIN

        block = self.editor.firstVisibleBlock()
        geometry = self.editor.blockBoundingGeometry(block).translated(self.editor.contentOffset())
        top = geometry.top()
        while block.isValid() and top <= event.rect().bottom():
            if block.isVisible() and top + line_height >= event.rect().top():
                painter.drawText(0, int(top), text_width, line_height, Qt.AlignRight,
                                 str(block.blockNumber() + 1))
            top += self.editor.blockBoundingRect(block).height()
            block = block.next()
        painter.end()


class CodeEditor(QPlainTextEdit):

    class LexicalHighlighter(QSyntaxHighlighter):
        IN_COMMENT = 1

        def __init__(self, parent):
            super().__init__(parent)
            self.kind_formats = {
                kind: char_format(*GROUP_STYLES[kind.group]) for kind in TokenKind
            }
            self.comment_format = char_format(*COMMENT_STYLE)

        def highlightBlock(self, text):
            comment_format = self.comment_format
            start = 0
            if self.previousBlockState() == self.IN_COMMENT:
                end = text.find("}")
                if end == -1:
                    self.setFormat(0, len(text), comment_format)
                    self.setCurrentBlockState(self.IN_COMMENT)
                    return
                self.setFormat(0, end + 1, comment_format)
                start = end + 1

            rows, _ = tokenize(text[start:])
            for _, token in rows:
                lexeme = source_text(token)
                if lexeme[0].isalnum() or lexeme[0] == "_":
                    pattern = QRegExp(r"\b" + QRegExp.escape(lexeme) + r"\b")
                else:
                    pattern = QRegExp(QRegExp.escape(lexeme))
                index = pattern.indexIn(text, start)
                while index >= 0:
                    self.setFormat(index, len(lexeme), self.kind_formats[token.kind])
                    index = pattern.indexIn(text, index + len(lexeme))

            self.setCurrentBlockState(0)
            line_comment = text.find("%", start)
            if line_comment >= 0:
                self.setFormat(line_comment, len(text) - line_comment, comment_format)

            opened = text.find("{", start)
            while opened >= 0:
                closed = text.find("}", opened + 1)
                if closed == -1:
                    self.setFormat(opened, len(text) - opened, comment_format)
                    self.setCurrentBlockState(self.IN_COMMENT)
                    return
                self.setFormat(opened, closed + 1 - opened, comment_format)
                opened = text.find("{", closed + 1)

    def __init__(self, parent):
        super().__init__(parent)
        self.setFont(QFont("consolas", 12))
        self.setLineWrapMode(QPlainTextEdit.NoWrap)
        self.file_path = None
        self.setStyleSheet(PANE_STYLE)
        self.highlighter = CodeEditor.LexicalHighlighter(self.document())
        self.is_modified = False
        self.textChanged.connect(self.mark_modified)

    def mark_modified(self):
        self.is_modified = True

    def reset_modified(self):
        self.is_modified = False


class CompilerIDE(QMainWindow):

    def __init__(self):
        super().__init__()
        self.initUI()
        self.setStyleSheet(f"QMainWindow, QWidget, QMenuBar, QMenu, QStatusBar {{ {PANE_STYLE} }}")

    def current_editor(self):
        container = self.editor_tabs.currentWidget()
        return container.findChild(CodeEditor) if container else None

    def run_lexical_analysis(self):
        editor = self.current_editor()
        if not editor:
            return
        rows, error = tokenize(editor.toPlainText())
        self.tokens_box.setPlainText(format_token_table(rows))
        self.errors_box.setPlainText(format_lexical_error(error))
        self.result_tabs.setCurrentWidget(self.errors_box)

    def run_compilation(self):
        editor = self.current_editor()
        if not editor:
            return
        result = compile_source(editor.toPlainText())
        self.errors_box.setPlainText(result.message)
        self.symbols_box.setPlainText(result.symbol_table_text)
        self.status_bar.showMessage("Accepted" if result.accepted else f"Rejected ({result.error.category})")
        self.result_tabs.setCurrentWidget(self.errors_box)

    def read_only_box(self):
        box = QPlainTextEdit()
        box.setReadOnly(True)
        box.setStyleSheet(PANE_STYLE)
        return box

    def initUI(self):
        main_splitter = QSplitter(Qt.Vertical)
        editor_splitter = QSplitter(Qt.Horizontal)

        self.editor_tabs = QTabWidget()
        self.editor_tabs.setTabsClosable(True)
        self.editor_tabs.setStyleSheet(TAB_STYLE)
        self.editor_tabs.tabCloseRequested.connect(self.close_editor_tab)
        self.editor_tabs.currentChanged.connect(self.update_window_title)

        analysis_tabs = QTabWidget()
        analysis_tabs.setStyleSheet(TAB_STYLE)
        self.tokens_box = self.read_only_box()
        analysis_tabs.addTab(self.tokens_box, "Tokens")
        self.symbols_box = self.read_only_box()
        analysis_tabs.addTab(self.symbols_box, "Symbol table")

        editor_splitter.addWidget(self.editor_tabs)
        editor_splitter.addWidget(analysis_tabs)

        self.result_tabs = QTabWidget()
        self.result_tabs.setStyleSheet(TAB_STYLE)
        self.errors_box = self.read_only_box()
        self.result_tabs.addTab(self.errors_box, "Result")

        main_splitter.addWidget(editor_splitter)
        main_splitter.addWidget(self.result_tabs)

        self.status_bar = QStatusBar()
        self.setStatusBar(self.status_bar)
        self.status_bar.showMessage("Ready")

        menu_bar = self.menuBar()
        file_menu = menu_bar.addMenu("File")
        compile_menu = menu_bar.addMenu("Compile")

        lexical_action = QAction("Lexical analysis", self)
        lexical_action.triggered.connect(self.run_lexical_analysis)
        compile_menu.addAction(lexical_action)
        compile_action = QAction("Compile", self)
        compile_action.setShortcut("F5")
        compile_action.triggered.connect(self.run_compilation)
        compile_menu.addAction(compile_action)

        for label, handler in (
            ("New", lambda: self.create_new_file()),
            ("Open", lambda: self.open_file()),
            ("Close", self.close_current_file),
            ("Save", self.save_file),
            ("Save as...", self.save_file_as),
        ):
            action = QAction(label, self)
            action.triggered.connect(handler)
            file_menu.addAction(action)

        self.setCentralWidget(main_splitter)
        self.setGeometry(100, 100, 900, 600)
        self.create_new_file()

    def create_new_file(self, content="", title="New file"):
        editor = CodeEditor(self)
        editor.setPlainText(content)
        editor.reset_modified()
        container = QWidget()
        layout = QHBoxLayout(container)
        layout.addWidget(LineNumberGutter(editor))
        layout.addWidget(editor)
        layout.setContentsMargins(0, 0, 0, 0)
        self.editor_tabs.addTab(container, title)
        self.editor_tabs.setCurrentWidget(container)
        self.update_window_title()
        return editor

    def open_file(self, path=None):
        if not path:
            path, _ = QFileDialog.getOpenFileName(self, "Open file", "", FILE_FILTER)
            if not path:
                return
        try:
            with open(path, "r", encoding="utf-8") as f:
                content = f.read()
        except OSError as exc:
            QMessageBox.critical(self, "Error", f"Could not open the file: {exc}")
            return
        editor = self.create_new_file(content, path.split("/")[-1])
        editor.file_path = path

    def save_file(self):
        editor = self.current_editor()
        if not editor:
            return
        if not editor.file_path:
            self.save_file_as()
            return
        try:
            with open(editor.file_path, "w", encoding="utf-8") as f:
                f.write(editor.toPlainText())
        except OSError as exc:
            QMessageBox.critical(self, "Error", f"Could not save the file: {exc}")
            return
        editor.reset_modified()

    def save_file_as(self):
        editor = self.current_editor()
        if not editor:
            return
        path, _ = QFileDialog.getSaveFileName(self, "Save file", "", FILE_FILTER)
        if path:
            editor.file_path = path
            self.save_file()
            self.editor_tabs.setTabText(self.editor_tabs.currentIndex(), path.split("/")[-1])
            self.update_window_title()

    def close_editor_tab(self, index):
        if self.editor_tabs.count() > 1:
            self.editor_tabs.removeTab(index)
        else:
            editor = self.editor_tabs.widget(index).findChild(CodeEditor)
            editor.clear()
            editor.file_path = None
        self.update_window_title()

    def close_current_file(self):
        index = self.editor_tabs.currentIndex()
        if index != -1:
            self.close_editor_tab(index)

    def update_window_title(self, *args):
        index = self.editor_tabs.currentIndex()
        if index == -1:
            self.setWindowTitle("Compiler - IDE")
        else:
            self.setWindowTitle(f"Compiler - {self.editor_tabs.tabText(index)}")


def main(path=None) -> int:
    app = QApplication(sys.argv[:1])
    ide = CompilerIDE()
    if path:
        ide.open_file(path)
    ide.show()
    return app.exec_()
