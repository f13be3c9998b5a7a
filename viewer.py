# NOTE: The preview window needs PyQt5.
#
# Installation (in terminal):
#   pip install PyQt5
import sys
from PyQt5.QtWidgets import (
    QApplication, QWidget, QVBoxLayout, QPushButton, QLabel,
    QFileDialog, QTextEdit, QSlider, QHBoxLayout, QCheckBox, QMessageBox
)
from PyQt5.QtGui import QPixmap, QImage, qRgb
from PyQt5.QtCore import Qt
from bmp_parser import BitmapError
from converter import ConversionOptions, build, convert
from packer import BitOrder, DEFAULT_PALETTE, unpack_rows


class BMPViewer(QWidget):
    def __init__(self):
        super().__init__()
        self.setWindowTitle("1bpp BMP to C Viewer")
        self.resize(700, 500)

        # Last conversion result and the file it came from
        self.result = None
        self.current_filepath = None
        self.scale = 1

        layout = QVBoxLayout()

        top_layout = QHBoxLayout()

        # Button to open BMP file
        self.open_button = QPushButton("Open BMP File")
        self.open_button.setFixedSize(150, 50)
        self.open_button.clicked.connect(self.open_file)
        top_layout.addWidget(self.open_button)

        # Button to write the C header
        self.export_button = QPushButton("Export C Header")
        self.export_button.setFixedSize(150, 50)
        self.export_button.clicked.connect(self.export_file)
        top_layout.addWidget(self.export_button)

        top_layout.addStretch()

        # Output options, re-run the conversion when toggled
        self.lsb_button = QCheckBox("LSB first")
        self.palette_button = QCheckBox("Palette")
        for btn in (self.lsb_button, self.palette_button):
            btn.clicked.connect(self.reload)
            top_layout.addWidget(btn)

        layout.addLayout(top_layout)

        # Label to display the packed image
        self.image_label = QLabel("No Image Loaded")
        self.image_label.setStyleSheet("border: 1px solid black; background: white;")
        self.image_label.setAlignment(Qt.AlignCenter)
        self.image_label.setFixedSize(700, 400)
        layout.addWidget(self.image_label)

        # Header fields and generated source
        self.metadata_box = QTextEdit("No Metadata Loaded")
        self.metadata_box.setMinimumHeight(150)
        self.metadata_box.setReadOnly(True)
        layout.addWidget(self.metadata_box)

        # Integer zoom, firmware bitmaps are small
        self.scale_slider = QSlider(Qt.Horizontal)
        self.scale_slider.setRange(1, 16)
        self.scale_slider.setValue(1)
        self.scale_slider.valueChanged.connect(self.update_image)
        layout.addWidget(QLabel("Scale"))
        layout.addWidget(self.scale_slider)

        self.setLayout(layout)

    def options(self, output_path=None):
        return ConversionOptions(
            input_path=self.current_filepath,
            output_path=output_path,
            bit_order=BitOrder.LSB_FIRST if self.lsb_button.isChecked() else BitOrder.MSB_FIRST,
            include_palette=self.palette_button.isChecked(),
        )

    # Open BMP file and convert it in memory
    def open_file(self):
        filepath, _ = QFileDialog.getOpenFileName(self, "Open BMP File", "", "BMP Files (*.bmp)")
        if not filepath:
            return

        self.current_filepath = filepath
        self.reload()

    def reload(self):
        if self.current_filepath is None:
            return

        try:
            self.result = build(self.options())
        except BitmapError as e:
            self.result = None
            self.image_label.setText("No Image Loaded")
            self.metadata_box.setText(f"{self.current_filepath}: {e}")
            return

        # Display metadata followed by the generated source
        meta_text = ""
        for k, v in self.result.header.as_metadata().items():
            meta_text += f"{k}: {v}\n"
        meta_text += f"time_ms: {self.result.time_ms:.2f}\n\n"
        self.metadata_box.setText(meta_text + self.result.text)

        self.update_image()

    # Draw the packed rows, so padding and bit order show as exported
    def update_image(self):
        if self.result is None:
            return

        self.scale = self.scale_slider.value()
        packed = self.result.packed
        palette = self.result.palette or DEFAULT_PALETTE
        colors = [qRgb(r, g, b) for (b, g, r) in palette]

        # Undo the bit reversal so the preview is upright in both modes
        pixels = unpack_rows(packed)

        new_w = packed.width * self.scale
        new_h = packed.height * self.scale
        if new_w == 0 or new_h == 0:
            self.image_label.setText("Empty Image")
            return

        image = QImage(new_w, new_h, QImage.Format_RGB32)
        for y in range(new_h):
            for x in range(new_w):
                index = pixels[y // self.scale][x // self.scale]
                image.setPixel(x, y, colors[index])

        # Show updated image
        pixmap = QPixmap.fromImage(image)
        self.image_label.setPixmap(pixmap)

    def export_file(self):
        if self.result is None:
            return

        output_filepath, _ = QFileDialog.getSaveFileName(self, "Save C Header", "", "C Headers (*.h)")
        if not output_filepath:
            return

        try:
            result = convert(self.options(output_filepath))
        except BitmapError as e:
            QMessageBox.critical(self, "Export failed", str(e))
            return

        self.metadata_box.append(f"Exported to {output_filepath}")
        self.metadata_box.append(f"Packed size: {len(result.packed.data)} bytes")
        self.metadata_box.append(f"Time: {result.time_ms:.2f} ms")


def main():
    app = QApplication(sys.argv)
    viewer = BMPViewer()
    viewer.show()
    return app.exec_()


if __name__ == "__main__":
    sys.exit(main())
