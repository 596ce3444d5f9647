#!/usr/bin/env python3
"""
Enroll identities from a directory of photos into the FaceGate gallery.

Usage:
    python scripts/import_identities.py photos/

Layout: one sub-directory per person, named after them, holding JPEG/PNG photos.
    photos/Alice/front.jpg
    photos/Bob/1.png

Every photo becomes one template (the most prominent face in the image).
"""

import sys
import os

import cv2

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import Config
from engines.facial_recognition import EmbeddingGallery, FaceDetector, FaceEmbedder
from services.db_manager import DBManager
from services.enrollment_service import EnrollmentService

IMAGE_EXTENSIONS = ('.jpg', '.jpeg', '.png', '.bmp')


def import_identities(photo_dir, enrollment):
    """Register every photo under photo_dir/<name>/ through the enrollment service."""
    imported = 0
    skipped = 0
    errors = 0

    for name in sorted(os.listdir(photo_dir)):
        person_dir = os.path.join(photo_dir, name)
        if not os.path.isdir(person_dir):
            continue

        for filename in sorted(os.listdir(person_dir)):
            if not filename.lower().endswith(IMAGE_EXTENSIONS):
                continue
            path = os.path.join(person_dir, filename)
            frame = cv2.imread(path)
            if frame is None:
                print(f"⚠️  Skipping unreadable image: {path}")
                skipped += 1
                continue

            result = enrollment.register(name, frame)
            if result.success:
                print(f"✅ Enrolled: {name} ← {filename} → ID {result.identity_id}")
                imported += 1
            else:
                print(f"❌ {name} ← {filename}: {result.error} ({result.message})")
                errors += 1

    print(f"\n{'='*40}")
    print(f"📊 Import Summary")
    print(f"   Imported: {imported}")
    print(f"   Skipped:  {skipped}")
    print(f"   Errors:   {errors}")
    print(f"{'='*40}")

    return imported


if __name__ == '__main__':
    if len(sys.argv) < 2:
        print("Usage: python scripts/import_identities.py <photo_dir>")
        sys.exit(1)

    photo_dir = sys.argv[1]
    if not os.path.isdir(photo_dir):
        print(f"❌ Directory not found: {photo_dir}")
        sys.exit(1)

    if not Config.DATABASE_URL:
        print("❌ DATABASE_URL is not set - nothing would be persisted")
        sys.exit(1)

    db = DBManager(Config.DATABASE_URL)
    db.init_schema()

    detector = FaceDetector(model_name=Config.DETECTOR_MODEL, gpu_id=Config.DETECTOR_GPU_ID)
    embedder = FaceEmbedder(Config.EMBEDDER_MODEL_PATH)
    enrollment = EnrollmentService(
        detector, embedder, EmbeddingGallery(store=db),
        detection_threshold=Config.DETECTION_THRESHOLD,
        reject_duplicates=False,
    )

    try:
        import_identities(photo_dir, enrollment)
    finally:
        db.close()
